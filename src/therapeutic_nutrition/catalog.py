"""Protocol catalog loading. Config-driven; the evaluator never reads it implicitly."""

import logging
from functools import lru_cache

from therapeutic_nutrition.config import get_protocol_config
from therapeutic_nutrition.models import ProtocolCatalog, ProtocolDefinition

logger = logging.getLogger(__name__)


class ProtocolNotFoundError(LookupError):
    """No protocol with this key in the catalog."""

    def __init__(self, protocol_key: str) -> None:
        super().__init__(f"Unknown therapeutic protocol: {protocol_key}")
        self.protocol_key = protocol_key


@lru_cache
def get_protocol_catalog(config_dir_str: str = "") -> ProtocolCatalog:
    """Validated catalog from config. Cached until reload_protocol_catalog()."""
    catalog = ProtocolCatalog.model_validate(get_protocol_config(config_dir_str))
    logger.info(
        "Loaded protocol catalog: %d protocols, %d ADH reference values",
        len(catalog.protocols),
        len(catalog.adh_reference_values),
    )
    return catalog


def reload_protocol_catalog() -> None:
    """Invalidate cached config so the next read goes back to disk."""
    get_protocol_catalog.cache_clear()
    get_protocol_config.cache_clear()


def require_protocol(catalog: ProtocolCatalog, protocol_key: str) -> ProtocolDefinition:
    protocol = catalog.get(protocol_key)
    if protocol is None:
        raise ProtocolNotFoundError(protocol_key)
    return protocol
