"""Well registry loaded from the well master table.

The registry is read once per process and indexed three ways: by field, by
well name and by the ``field|well_name`` composite key. A failed load leaves
the registry empty and every lookup answers "not found"; nothing here raises
to the caller.
"""

from dataclasses import dataclass
from enum import Enum, auto
import logging
from pathlib import Path
from typing import Iterable, Literal, Mapping

import requests

from .coerce import to_non_negative_float, to_text
from .csv_codec import parse

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "wells_master.csv"
DEFAULT_ATTENDANTS = ("T. Cherry", "T. Ressler")
REQUIRED_COLUMNS = ("igs_id", "well_name", "field", "orifice_size", "is_obs")

DuplicatePolicy = Literal["last_wins", "reject"]


class RegistryLoadError(Exception):
    """Raised internally when the well master table cannot be read."""


class RegistryState(Enum):
    """Lifecycle of a WellRegistry."""
    EMPTY = auto()
    LOADING = auto()
    LOADED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class WellRecord:
    """One row of the well master table.

    Attributes:
        id: External well identifier (igs_id)
        name: Well name, unique within its field
        field: Field the well belongs to
        orifice_size: Meter orifice plate size, never negative
        is_observation: True for observation wells
    """
    id: str
    name: str
    field: str
    orifice_size: float = 0.0
    is_observation: bool = False

    @property
    def key(self) -> str:
        """Composite registry key."""
        return make_key(self.field, self.name)


def make_key(field: str, well_name: str) -> str:
    """Build the ``field|well_name`` composite key."""
    return f"{field}|{well_name}"


def normalize_row(row: Mapping[str, object]) -> WellRecord:
    """Normalize a raw master-table row into a WellRecord."""
    return WellRecord(
        id=to_text(row.get("igs_id")),
        name=to_text(row.get("well_name")),
        field=to_text(row.get("field")),
        orifice_size=to_non_negative_float(row.get("orifice_size")),
        is_observation=to_text(row.get("is_obs"), default="N").upper().startswith("Y"),
    )


def fetch_text(source: str | Path, timeout: float = 30.0) -> str:
    """Read the master table from a file path or an http(s) URL.

    Raises:
        RegistryLoadError: On transport failure, non-success status or
            undecodable content
    """
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        try:
            resp = requests.get(source_str, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise RegistryLoadError(f"{source_str}: {e}") from e
        return resp.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise RegistryLoadError(f"{path}: {e}") from e


class WellRegistry:
    """Lookup service over the well master table.

    Loading happens at most once. Indices are built aside and installed in
    one step, so callers see either the empty registry or the fully loaded
    one.

    Attributes:
        source: Default path or URL of the master table
        timeout: HTTP timeout in seconds
        duplicate_policy: "last_wins" keeps every row in the field and name
            indices and lets the last row own the composite key; "reject"
            drops repeated (field, well_name) rows entirely
        state: Current RegistryState
        error: Error from the last failed load, if any
        duplicates: Composite keys seen more than once in the source
    """

    def __init__(
        self,
        source: str | Path = DEFAULT_SOURCE,
        timeout: float = 30.0,
        duplicate_policy: DuplicatePolicy = "last_wins",
        attendants: Iterable[str] = DEFAULT_ATTENDANTS,
    ):
        self.source = source
        self.timeout = timeout
        self.duplicate_policy = duplicate_policy
        self._attendants = list(attendants)

        self.state = RegistryState.EMPTY
        self.error: RegistryLoadError | None = None
        self.duplicates: list[str] = []

        self._wells: list[WellRecord] = []
        self._by_field: dict[str, list[WellRecord]] = {}
        self._by_name: dict[str, list[WellRecord]] = {}
        self._by_key: dict[str, WellRecord] = {}

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, object]], **kwargs) -> "WellRegistry":
        """Create a loaded registry from already-parsed master-table rows.

        Args:
            rows: Row dicts with the master-table column names
            **kwargs: Passed to the constructor

        Returns:
            Registry in the LOADED state
        """
        registry = cls(**kwargs)
        registry._install([normalize_row(row) for row in rows])
        registry.state = RegistryState.LOADED
        return registry

    @property
    def is_loaded(self) -> bool:
        return self.state is RegistryState.LOADED

    @property
    def wells(self) -> list[WellRecord]:
        """All loaded wells in source order."""
        return list(self._wells)

    def load(self, source: str | Path | None = None) -> bool:
        """Load and index the master table.

        A loaded registry ignores further calls. A failed load is not retried
        until ``reset()`` is called.

        Args:
            source: Path or URL; defaults to ``self.source``

        Returns:
            True if the registry is loaded after the call
        """
        if self.state is RegistryState.LOADED:
            return True
        if self.state is RegistryState.LOADING:
            return False
        if self.state is RegistryState.FAILED:
            logger.debug("Well registry load previously failed; call reset() to retry")
            return False

        source = source if source is not None else self.source
        self.state = RegistryState.LOADING
        try:
            rows = parse(fetch_text(source, self.timeout))
        except RegistryLoadError as e:
            self.error = e
            self.state = RegistryState.FAILED
            logger.error(f"Failed to load well registry: {e}")
            return False

        if rows:
            missing = [c for c in REQUIRED_COLUMNS if c not in rows[0]]
            if missing:
                logger.warning(
                    f"Well master table {source} is missing column(s): {', '.join(missing)}"
                )

        self._install([normalize_row(row) for row in rows])
        self.state = RegistryState.LOADED
        logger.info(f"Loaded {len(self._wells)} wells from {source}")
        return True

    def reset(self) -> None:
        """Return to the empty state so the registry can be loaded again."""
        self.state = RegistryState.EMPTY
        self.error = None
        self._install([])

    def _install(self, records: list[WellRecord]) -> None:
        """Build all indices from ``records`` and swap them in."""
        wells: list[WellRecord] = []
        by_field: dict[str, list[WellRecord]] = {}
        by_name: dict[str, list[WellRecord]] = {}
        by_key: dict[str, WellRecord] = {}
        duplicates: list[str] = []

        for well in records:
            key = well.key
            if key in by_key:
                if key not in duplicates:
                    duplicates.append(key)
                if self.duplicate_policy == "reject":
                    logger.warning(f"Skipping duplicate well {key!r} (igs_id={well.id!r})")
                    continue
                logger.warning(f"Duplicate well {key!r}; last row wins for lookups")

            wells.append(well)
            by_field.setdefault(well.field, []).append(well)
            by_name.setdefault(well.name, []).append(well)
            by_key[key] = well

        self._wells = wells
        self._by_field = by_field
        self._by_name = by_name
        self._by_key = by_key
        self.duplicates = duplicates

    def fields(self) -> list[str]:
        """Known field names in first-seen order."""
        return list(self._by_field)

    def wells_in_field(self, field: str) -> list[str]:
        """Well names in ``field`` in source order; empty for unknown fields."""
        return [w.name for w in self._by_field.get(field, [])]

    def observation_wells(self, field: str) -> list[str]:
        """Names of the observation wells in ``field``."""
        return [w.name for w in self._by_field.get(field, []) if w.is_observation]

    def wells_named(self, well_name: str) -> list[WellRecord]:
        """Every well called ``well_name``, across all fields."""
        return list(self._by_name.get(well_name, []))

    def lookup(self, field: str, well_name: str) -> WellRecord | None:
        """Find a well by field and name."""
        return self._by_key.get(make_key(field, well_name))

    def resolve_identifier(self, field: str, well_name: str) -> str:
        """External identifier for a well, or "" if unknown."""
        well = self.lookup(field, well_name)
        return well.id if well else ""

    def resolve_orifice_size(self, field: str, well_name: str) -> float:
        """Registry orifice size for a well, or 0.0 if unknown."""
        well = self.lookup(field, well_name)
        return well.orifice_size if well else 0.0

    def attendants(self) -> list[str]:
        """Attendant roster (a copy)."""
        return list(self._attendants)

    def __len__(self) -> int:
        return len(self._wells)


_registry: WellRegistry | None = None


def get_registry(**kwargs) -> WellRegistry:
    """Return the process-wide registry, creating it on first use.

    Keyword arguments configure the registry only when it is first created.
    The registry is not loaded here; call ``load()`` on it.
    """
    global _registry
    if _registry is None:
        _registry = WellRegistry(**kwargs)
    return _registry
