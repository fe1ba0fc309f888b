"""Therapeutic nutrition: supplement rule evaluation and meal-plan coverage."""

__version__ = "0.1.0"
