"""Record types for each reading kind.

Each kind is a frozen dataclass with a fixed field set. ``COLUMNS`` is both
the stored field set and the export column order; ``QUOTED`` names the
free-text columns that are escaped on export.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping

LEAK_TYPES = ("", "internal", "external", "both")
SHUT_IN_STRINGS = ("Tubing", "Annulus")


class RecordKind(str, Enum):
    """Reading kinds. The value is the ``type`` tag stored with each record."""
    DAILY_PRESSURE = "daily_pressure"
    ANNUAL = "annual"
    SHUT_IN = "shut_in"
    OBSERVATION = "obs"
    WELL_STATUS = "well_status"
    DAILY_ACTIVITY = "daily_activity"

    @property
    def collection_key(self) -> str:
        """Blob store key of this kind's collection."""
        return f"ff_{self.value}"

    @property
    def export_prefix(self) -> str:
        """Filename prefix used for exports."""
        return _EXPORT_PREFIXES.get(self, self.value)

    @classmethod
    def parse(cls, value: "str | RecordKind") -> "RecordKind":
        """Resolve a kind from its tag, name or a common spelling.

        Raises:
            ValueError: If ``value`` names no kind
        """
        if isinstance(value, RecordKind):
            return value
        text = str(value).strip().lower().replace("-", "_")
        text = _KIND_ALIASES.get(text, text)
        for kind in cls:
            if text in (kind.value, kind.name.lower()):
                return kind
        valid = ", ".join(k.value for k in cls)
        raise ValueError(f"Unknown record kind '{value}'. Must be one of: {valid}")


_EXPORT_PREFIXES = {RecordKind.ANNUAL: "annuals"}
_KIND_ALIASES = {
    "annuals": "annual",
    "shutin": "shut_in",
    "observation": "obs",
    "status": "well_status",
    "activity": "daily_activity",
    "pressure": "daily_pressure",
}


@dataclass(frozen=True)
class ReadingRecord:
    """Fields common to every reading.

    Attributes:
        date: Reading date as entered (normally YYYY-MM-DD)
        attendant: Operator who took the reading
        ts: Creation timestamp, ISO-8601 UTC
    """
    kind: ClassVar[RecordKind]
    COLUMNS: ClassVar[tuple[str, ...]] = ()
    QUOTED: ClassVar[frozenset[str]] = frozenset()
    # Column name -> attribute name, where they differ
    ATTRIBUTES: ClassVar[dict[str, str]] = {}
    well_scoped: ClassVar[bool] = False

    date: str = ""
    attendant: str = ""
    ts: str = ""

    @classmethod
    def attribute_for(cls, column: str) -> str:
        return cls.ATTRIBUTES.get(column, column)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the stored (wire) form, tagged with ``type``."""
        data: dict[str, Any] = {"type": self.kind.value}
        for column in self.COLUMNS:
            value = getattr(self, self.attribute_for(column))
            data[column] = list(value) if isinstance(value, tuple) else value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReadingRecord":
        """Create from the stored form. Unknown keys are ignored."""
        kwargs = {}
        for column in cls.COLUMNS:
            if column in data:
                value = data[column]
                kwargs[cls.attribute_for(column)] = tuple(value) if isinstance(value, list) else value
        return cls(**kwargs)

    @classmethod
    def project(cls, data: Mapping[str, Any]) -> list[Any]:
        """Project a stored record onto the export column order.

        Missing values project as None; missing free-text values as "".
        """
        row = []
        for column in cls.COLUMNS:
            value = data.get(column)
            if column in cls.QUOTED and not value:
                value = [] if column == "entries" else ""
            row.append(value)
        return row


@dataclass(frozen=True)
class WellReading(ReadingRecord):
    """Reading taken against a single well.

    Attributes:
        field: Field name
        well: Well name
        well_id: Registry identifier, "" when the well is unknown
    """
    well_scoped: ClassVar[bool] = True

    field: str = ""
    well: str = ""
    well_id: str = ""


_WELL_BLOCK = ("date", "field", "well", "well_id", "attendant")


@dataclass(frozen=True)
class DailyPressureRecord(WellReading):
    """Daily meter run pressures and flow."""
    kind: ClassVar[RecordKind] = RecordKind.DAILY_PRESSURE
    COLUMNS: ClassVar[tuple[str, ...]] = _WELL_BLOCK + (
        "upstream", "downstream", "differential", "dpH2O", "orifice", "mcfhr", "notes", "ts",
    )
    QUOTED: ClassVar[frozenset[str]] = frozenset({"notes"})
    ATTRIBUTES: ClassVar[dict[str, str]] = {"dpH2O": "dp_h2o"}

    upstream: float = 0.0
    downstream: float = 0.0
    differential: float = 0.0
    dp_h2o: float = 0.0
    orifice: float = 0.0
    mcfhr: float = 0.0
    notes: str = ""


@dataclass(frozen=True)
class AnnualRecord(WellReading):
    """Annual valve and leak inspection.

    ``valve_ok`` and ``leak`` are None when not determined.
    """
    kind: ClassVar[RecordKind] = RecordKind.ANNUAL
    COLUMNS: ClassVar[tuple[str, ...]] = _WELL_BLOCK + (
        "valve_ok", "leak", "leak_type", "notes", "ts",
    )
    QUOTED: ClassVar[frozenset[str]] = frozenset({"notes"})

    valve_ok: bool | None = None
    leak: bool | None = None
    leak_type: str = ""
    notes: str = ""


@dataclass(frozen=True)
class ShutInRecord(WellReading):
    """Shut-in pressure test reading for one string on one test day."""
    kind: ClassVar[RecordKind] = RecordKind.SHUT_IN
    COLUMNS: ClassVar[tuple[str, ...]] = _WELL_BLOCK + (
        "string", "day", "tempF", "psi", "notes", "ts",
    )
    QUOTED: ClassVar[frozenset[str]] = frozenset({"notes"})
    ATTRIBUTES: ClassVar[dict[str, str]] = {"tempF": "temp_f"}

    string: str = "Tubing"
    day: int = 1
    temp_f: float = 0.0
    psi: float = 0.0
    notes: str = ""


@dataclass(frozen=True)
class ObservationRecord(WellReading):
    """Observation well pressures and blowdown."""
    kind: ClassVar[RecordKind] = RecordKind.OBSERVATION
    COLUMNS: ClassVar[tuple[str, ...]] = _WELL_BLOCK + (
        "tubing_psi", "annulus_psi", "surface_psi", "blowdown_min", "on_water", "remarks", "ts",
    )
    QUOTED: ClassVar[frozenset[str]] = frozenset({"remarks"})

    tubing_psi: float = 0.0
    annulus_psi: float = 0.0
    surface_psi: float = 0.0
    blowdown_min: float = 0.0
    on_water: str = "N"
    remarks: str = ""


@dataclass(frozen=True)
class WellStatusRecord(WellReading):
    """Free-form well status (Online, Offline, Maint, ...)."""
    kind: ClassVar[RecordKind] = RecordKind.WELL_STATUS
    COLUMNS: ClassVar[tuple[str, ...]] = _WELL_BLOCK + ("status", "notes", "ts")
    QUOTED: ClassVar[frozenset[str]] = frozenset({"notes"})

    status: str = ""
    notes: str = ""


@dataclass(frozen=True)
class DailyActivityRecord(ReadingRecord):
    """Attendant's daily activity log; not tied to a well."""
    kind: ClassVar[RecordKind] = RecordKind.DAILY_ACTIVITY
    COLUMNS: ClassVar[tuple[str, ...]] = (
        "date", "attendant", "remarks", "signature", "entries", "ts",
    )
    QUOTED: ClassVar[frozenset[str]] = frozenset({"remarks", "signature", "entries"})

    remarks: str = ""
    signature: str = ""
    entries: tuple[str, ...] = ()


RECORD_TYPES: dict[RecordKind, type[ReadingRecord]] = {
    cls.kind: cls
    for cls in (
        DailyPressureRecord,
        AnnualRecord,
        ShutInRecord,
        ObservationRecord,
        WellStatusRecord,
        DailyActivityRecord,
    )
}


def record_type(kind: "RecordKind | str") -> type[ReadingRecord]:
    """Record class for a kind."""
    return RECORD_TYPES[RecordKind.parse(kind)]


def record_from_dict(data: Mapping[str, Any]) -> ReadingRecord | None:
    """Decode a stored record using its ``type`` tag.

    Returns:
        The typed record, or None if the tag is missing or unknown
    """
    try:
        kind = RecordKind.parse(data.get("type", ""))
    except ValueError:
        return None
    return RECORD_TYPES[kind].from_dict(data)
