"""Export stored record collections as CSV.

Each kind is written with its fixed column order. Free-text columns are
escaped as JSON literals; everything else is written raw. Output bytes go to
a sink, a callable taking ``(filename, data)``.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging
from pathlib import Path
from typing import Any, Callable, Mapping

import pandas as pd

from ..data.coerce import parse_date, to_text
from ..data.csv_codec import serialize
from ..records.schemas import RecordKind, record_type
from ..records.storage import RecordStore

logger = logging.getLogger(__name__)

Sink = Callable[[str, bytes], None]


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def effective_date(record: Mapping[str, Any]) -> date | None:
    """Date a record counts under for range filtering.

    Uses the record's own ``date`` and falls back to its creation timestamp
    when the date is missing or unparseable.
    """
    return parse_date(record.get("date")) or parse_date(record.get("ts"))


@dataclass
class ExportResult:
    """Outcome of one export.

    Attributes:
        filename: Name handed to the sink
        row_count: Number of data rows written
        content: CSV text written
    """
    filename: str
    row_count: int
    content: str


class DirectorySink:
    """Sink that writes export files into a directory.

    Attributes:
        output_dir: Target directory (created on first write)
        written: Paths written so far
    """

    def __init__(self, output_dir: Path | str):
        self.output_dir = Path(output_dir)
        self.written: list[Path] = []

    def __call__(self, filename: str, data: bytes) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(data)
        self.written.append(path)


class RecordExporter:
    """Export record collections to CSV through a sink.

    Example:
        >>> exporter = RecordExporter(store, DirectorySink("exports"))
        >>> exporter.export_range("annual", date_from="2024-01-01", field="Dixon")
    """

    def __init__(
        self,
        store: RecordStore,
        sink: Sink,
        today: Callable[[], date] = utc_today,
    ):
        """Initialize exporter.

        Args:
            store: Record store to read from
            sink: Callable receiving (filename, bytes)
            today: Clock for the date stamped into full-export filenames
        """
        self.store = store
        self.sink = sink
        self.today = today

    def render(self, kind: RecordKind | str, records: list[Mapping[str, Any]]) -> str:
        """Serialize stored records of one kind to CSV text."""
        cls = record_type(kind)
        return serialize(
            cls.COLUMNS,
            (cls.project(r) for r in records),
            quoted=cls.QUOTED,
        )

    def _emit(self, kind: RecordKind, filename: str, records: list[Mapping[str, Any]]) -> ExportResult:
        content = self.render(kind, records)
        self.sink(filename, content.encode("utf-8"))
        logger.info(f"Exported {len(records)} {kind.value} records to {filename}")
        return ExportResult(filename=filename, row_count=len(records), content=content)

    def _stored(self, kind: RecordKind) -> list[Mapping[str, Any]]:
        return [r for r in self.store.all(kind.collection_key) if isinstance(r, dict)]

    def export_all(self, kind: RecordKind | str) -> ExportResult:
        """Export every stored record of a kind.

        The filename is ``<prefix>_<YYYY-MM-DD>.csv`` with today's date.
        """
        kind = RecordKind.parse(kind)
        filename = f"{kind.export_prefix}_{self.today().isoformat()}.csv"
        return self._emit(kind, filename, self._stored(kind))

    def select(
        self,
        kind: RecordKind | str,
        date_from: str | date | None = None,
        date_to: str | date | None = None,
        field: str | None = None,
    ) -> list[Mapping[str, Any]]:
        """Filter stored records by inclusive date range and field.

        An omitted bound is open on that side. When any bound is set,
        records with no usable date are left out. An unparseable bound is
        ignored with a warning.
        """
        kind = RecordKind.parse(kind)
        start = self._parse_bound(date_from, "from")
        end = self._parse_bound(date_to, "to")
        field_filter = to_text(field)

        selected = []
        for record in self._stored(kind):
            if field_filter and record.get("field") != field_filter:
                continue
            if start is not None or end is not None:
                d = effective_date(record)
                if d is None:
                    continue
                if start is not None and d < start:
                    continue
                if end is not None and d > end:
                    continue
            selected.append(record)
        return selected

    @staticmethod
    def _parse_bound(value: str | date | None, name: str) -> date | None:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not to_text(value):
            return None
        parsed = parse_date(value)
        if parsed is None:
            logger.warning(f"Ignoring unparseable '{name}' date: {value!r}")
        return parsed

    def export_range(
        self,
        kind: RecordKind | str,
        date_from: str | date | None = None,
        date_to: str | date | None = None,
        field: str | None = None,
    ) -> ExportResult:
        """Export the records of a kind within a date range.

        The filename is ``<prefix>_<from>_to_<to>.csv`` with bounds as ISO
        dates and ``all`` in place of an omitted or unparseable bound.
        """
        kind = RecordKind.parse(kind)
        start = self._parse_bound(date_from, "from")
        end = self._parse_bound(date_to, "to")
        records = self.select(kind, start, end, field)
        label_from = start.isoformat() if start else "all"
        label_to = end.isoformat() if end else "all"
        filename = f"{kind.export_prefix}_{label_from}_to_{label_to}.csv"
        return self._emit(kind, filename, records)

    def to_dataframe(
        self,
        kind: RecordKind | str,
        date_from: str | date | None = None,
        date_to: str | date | None = None,
        field: str | None = None,
    ) -> pd.DataFrame:
        """Selected records as a DataFrame in export column order."""
        cls = record_type(kind)
        records = self.select(kind, date_from, date_to, field)
        return pd.DataFrame(
            [cls.project(r) for r in records],
            columns=list(cls.COLUMNS),
        )
