"""Business logic services."""

from therapeutic_nutrition.services.therapeutic_service import TherapeuticService

__all__ = ["TherapeuticService"]
