"""CSV export of stored record collections."""

from .csv_export import DirectorySink, ExportResult, RecordExporter, effective_date

__all__ = ["DirectorySink", "ExportResult", "RecordExporter", "effective_date"]
