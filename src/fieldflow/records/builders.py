"""Record builders: raw form input -> canonical record.

Builders never raise. Missing or malformed input falls back to the defaults
of the coercion helpers, and well identifiers are resolved from the
registry at build time.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from ..data.coerce import (
    to_choice,
    to_flag,
    to_float,
    to_int,
    to_text,
    to_text_list,
    to_tristate,
)
from ..data.registry import WellRegistry
from .schemas import (
    LEAK_TYPES,
    SHUT_IN_STRINGS,
    AnnualRecord,
    DailyActivityRecord,
    DailyPressureRecord,
    ObservationRecord,
    ReadingRecord,
    RecordKind,
    ShutInRecord,
    WellStatusRecord,
)
from .storage import RecordStore

RawInput = Mapping[str, Any]


def format_timestamp(now: datetime | None = None) -> str:
    """Format a creation timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _well_block(raw: RawInput, registry: WellRegistry, now: datetime | None) -> dict[str, Any]:
    """Common fields of a well-scoped reading, with the identifier resolved."""
    field = to_text(raw.get("field"))
    well = to_text(raw.get("well"))
    return {
        "date": to_text(raw.get("date")),
        "field": field,
        "well": well,
        "well_id": registry.resolve_identifier(field, well),
        "attendant": to_text(raw.get("attendant")),
        "ts": format_timestamp(now),
    }


def build_daily_pressure(
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> DailyPressureRecord:
    """Build a daily pressure record.

    The orifice size falls back to the registry value when the operator
    leaves it blank or zero.
    """
    block = _well_block(raw, registry, now)
    orifice = to_float(raw.get("orifice")) or registry.resolve_orifice_size(
        block["field"], block["well"]
    )
    return DailyPressureRecord(
        **block,
        upstream=to_float(raw.get("upstream")),
        downstream=to_float(raw.get("downstream")),
        differential=to_float(raw.get("differential")),
        dp_h2o=to_float(raw.get("dpH2O", raw.get("dp_h2o"))),
        orifice=orifice,
        mcfhr=to_float(raw.get("mcfhr")),
        notes=to_text(raw.get("notes")),
    )


def build_annual(
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> AnnualRecord:
    """Build an annual inspection record."""
    return AnnualRecord(
        **_well_block(raw, registry, now),
        valve_ok=to_tristate(raw.get("valve_ok")),
        leak=to_tristate(raw.get("leak")),
        leak_type=to_choice(raw.get("leak_type"), LEAK_TYPES, default=""),
        notes=to_text(raw.get("notes")),
    )


def build_shut_in(
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> ShutInRecord:
    """Build a shut-in test record. Test day 0 or blank counts as day 1."""
    return ShutInRecord(
        **_well_block(raw, registry, now),
        string=to_choice(raw.get("string"), SHUT_IN_STRINGS, default="Tubing"),
        day=to_int(raw.get("day")) or 1,
        temp_f=to_float(raw.get("tempF", raw.get("temp_f"))),
        psi=to_float(raw.get("psi")),
        notes=to_text(raw.get("notes")),
    )


def build_observation(
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> ObservationRecord:
    return ObservationRecord(
        **_well_block(raw, registry, now),
        tubing_psi=to_float(raw.get("tubing_psi")),
        annulus_psi=to_float(raw.get("annulus_psi")),
        surface_psi=to_float(raw.get("surface_psi")),
        blowdown_min=to_float(raw.get("blowdown_min")),
        on_water=to_flag(raw.get("on_water")),
        remarks=to_text(raw.get("remarks")),
    )


def build_well_status(
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> WellStatusRecord:
    return WellStatusRecord(
        **_well_block(raw, registry, now),
        status=to_text(raw.get("status")),
        notes=to_text(raw.get("notes")),
    )


def build_daily_activity(
    raw: RawInput,
    registry: WellRegistry | None = None,
    now: datetime | None = None,
) -> DailyActivityRecord:
    """Build a daily activity log record. No well lookup is done."""
    return DailyActivityRecord(
        date=to_text(raw.get("date")),
        attendant=to_text(raw.get("attendant")),
        remarks=to_text(raw.get("remarks")),
        signature=to_text(raw.get("signature")),
        entries=tuple(to_text_list(raw.get("entries"))),
        ts=format_timestamp(now),
    )


BUILDERS: dict[RecordKind, Callable[..., ReadingRecord]] = {
    RecordKind.DAILY_PRESSURE: build_daily_pressure,
    RecordKind.ANNUAL: build_annual,
    RecordKind.SHUT_IN: build_shut_in,
    RecordKind.OBSERVATION: build_observation,
    RecordKind.WELL_STATUS: build_well_status,
    RecordKind.DAILY_ACTIVITY: build_daily_activity,
}


def build_record(
    kind: RecordKind | str,
    raw: RawInput,
    registry: WellRegistry,
    now: datetime | None = None,
) -> ReadingRecord:
    """Build a record of any kind. ``raw`` may be None.

    Raises:
        ValueError: If ``kind`` is not a known record kind
    """
    return BUILDERS[RecordKind.parse(kind)](raw or {}, registry, now)


def save(
    kind: RecordKind | str,
    raw: RawInput,
    registry: WellRegistry,
    store: RecordStore,
    now: datetime | None = None,
) -> ReadingRecord:
    """Build a record and append it to its collection.

    Returns:
        The stored record
    """
    record = build_record(kind, raw, registry, now)
    store.append(record.kind.collection_key, record)
    return record
