"""Property store components: file codec and the shared ConfigStore."""
from src.store.config_store import ConfigStore, get_config_store
from src.store.properties import format_properties, parse_properties

__all__ = [
    "ConfigStore",
    "format_properties",
    "get_config_store",
    "parse_properties",
]
