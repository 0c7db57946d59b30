"""Delimited text codec for the well master table and record exports.

The reader is minimal: fields are split on bare commas with no
quoting support, which is all the well master table uses. The writer escapes
free-text columns as JSON string literals so operator-entered commas, quotes
and newlines cannot shift column alignment; ``parse_quoted`` is the matching
reader for files produced that way.
"""

import json
import re
from typing import Any, Iterable, Sequence

_LINE_BREAK = re.compile(r"\r?\n")
_DECODER = json.JSONDecoder()


def parse(text: str) -> list[dict[str, str]]:
    """Parse an unquoted, comma-delimited table into row dicts.

    The first line is the header. Every later line is split on commas and
    mapped positionally onto the header; missing trailing fields become
    empty strings and surplus fields are dropped.

    Args:
        text: Raw table text

    Returns:
        List of row dicts keyed by trimmed header name
    """
    text = text.rstrip()
    if not text:
        return []

    lines = _LINE_BREAK.split(text)
    headers = [h.strip() for h in lines[0].split(",")]

    rows = []
    for line in lines[1:]:
        cols = [c.strip() for c in line.split(",")]
        rows.append({
            h: cols[i] if i < len(cols) else ""
            for i, h in enumerate(headers)
        })
    return rows


def quote(value: Any) -> str:
    """Escape a free-text value as a JSON literal.

    ``None`` is treated as an empty string. Lists and tuples are written as a
    compact JSON array of strings.
    """
    if value is None:
        value = ""
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False, separators=(",", ":"))
    return json.dumps(str(value), ensure_ascii=False)


def format_value(value: Any) -> str:
    """Render a raw (unquoted) cell value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def serialize(
    header: Sequence[str],
    rows: Iterable[Sequence[Any]],
    quoted: Iterable[str] = (),
) -> str:
    """Serialize rows into comma-delimited text.

    Args:
        header: Column names
        rows: Row value sequences in header order
        quoted: Names of free-text columns to escape with ``quote``

    Returns:
        Header and rows joined by newlines (no trailing newline)
    """
    quoted_names = set(quoted)
    quoted_idx = {i for i, name in enumerate(header) if name in quoted_names}

    lines = [",".join(header)]
    for row in rows:
        cells = [
            quote(value) if i in quoted_idx else format_value(value)
            for i, value in enumerate(row)
        ]
        lines.append(",".join(cells))
    return "\n".join(lines)


def _split_quoted_line(line: str, quoted_idx: set[int]) -> list[Any]:
    """Split one exported line, decoding JSON literals in quoted columns."""
    cells: list[Any] = []
    pos = 0
    length = len(line)

    while True:
        idx = len(cells)
        if idx in quoted_idx and pos < length and line[pos] in '"[':
            try:
                value, pos = _DECODER.raw_decode(line, pos)
            except json.JSONDecodeError:
                end = line.find(",", pos)
                end = length if end == -1 else end
                value, pos = line[pos:end], end
            cells.append(value)
        else:
            end = line.find(",", pos)
            end = length if end == -1 else end
            cells.append(line[pos:end].strip())
            pos = end

        if pos >= length:
            break
        # Skip the delimiter; anything between a literal and the comma is dropped
        comma = line.find(",", pos)
        if comma == -1:
            break
        pos = comma + 1
        if pos == length:
            cells.append("")
            break

    return cells


def parse_quoted(text: str, quoted: Iterable[str] = ()) -> list[dict[str, Any]]:
    """Parse text produced by ``serialize`` back into row dicts.

    Quoted columns are decoded from their JSON literal, so strings come back
    unchanged and entry lists come back as lists. Other columns are returned
    as trimmed strings, as ``parse`` does.

    Args:
        text: Exported table text
        quoted: Names of the columns that were escaped on export

    Returns:
        List of row dicts keyed by header name
    """
    text = text.rstrip()
    if not text:
        return []

    lines = _LINE_BREAK.split(text)
    headers = [h.strip() for h in lines[0].split(",")]
    quoted_names = set(quoted)
    quoted_idx = {i for i, name in enumerate(headers) if name in quoted_names}

    rows = []
    for line in lines[1:]:
        cells = _split_quoted_line(line, quoted_idx)
        rows.append({
            h: cells[i] if i < len(cells) else ""
            for i, h in enumerate(headers)
        })
    return rows
