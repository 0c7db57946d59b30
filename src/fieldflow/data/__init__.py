"""Well registry, CSV codec and value coercions."""

from .csv_codec import parse, parse_quoted, quote, serialize
from .registry import (
    RegistryLoadError,
    RegistryState,
    WellRecord,
    WellRegistry,
    get_registry,
)

__all__ = [
    "parse",
    "parse_quoted",
    "quote",
    "serialize",
    "RegistryLoadError",
    "RegistryState",
    "WellRecord",
    "WellRegistry",
    "get_registry",
]
