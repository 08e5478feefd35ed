from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from .model import Table, TableAlignment

SEPARATOR_ROW = re.compile(r"^\|?(\s*:?-+:?\s*\|)+\s*(:?-+:?\s*)?\|?$")


def is_table_row(line: str) -> bool:
    """A row has at least one pipe and something other than pipes and whitespace."""
    trimmed = line.strip()
    return "|" in trimmed and bool(trimmed.replace("|", "").strip())


def is_separator_row(line: str) -> bool:
    return SEPARATOR_ROW.match(line.strip()) is not None


def split_row(line: str) -> List[str]:
    """Split one pipe row into trimmed cells, keeping empty cells."""
    trimmed = line.strip()
    if trimmed.startswith("|"):
        trimmed = trimmed[1:]
    if trimmed.endswith("|"):
        trimmed = trimmed[:-1]
    return [cell.strip() for cell in trimmed.split("|")]


def cell_alignment(cell: str) -> TableAlignment:
    cell = cell.strip()
    if cell.startswith(":") and cell.endswith(":"):
        return "center"
    if cell.startswith(":"):
        return "left"
    if cell.endswith(":"):
        return "right"
    return "none"


def parse_table(
    rows: Sequence[str],
    header_rows: Optional[Iterable[int]] = None,
    header_columns: Optional[Iterable[int]] = None,
) -> Optional[Table]:
    """Build a :class:`Table` from the raw rows of one table region.

    ``header_rows`` are indices into ``rows`` as collected (the separator row
    included) and are translated to table-row space, where 0 is the header row
    and 1 the first data row. Row 0 and column 0 are always header cells;
    markers add to them. Returns None when no separator row exists at index 1
    or later.
    """
    # row 0 is the header even when it looks like a separator itself
    separator_index = next((idx for idx in range(1, len(rows)) if is_separator_row(rows[idx])), None)
    if separator_index is None:
        return None

    headers = split_row(rows[0])
    alignments = [cell_alignment(cell) for cell in split_row(rows[separator_index])]
    if len(alignments) < len(headers):
        alignments.extend(["none"] * (len(headers) - len(alignments)))
    alignments = alignments[: len(headers)]

    data_rows = [tuple(split_row(row)) for row in rows[separator_index + 1 :] if is_table_row(row)]

    marked_rows = {0}
    for index in header_rows or ():
        if index == separator_index:
            continue
        marked_rows.add(index - 1 if index > separator_index else index)

    return Table(
        headers=tuple(headers),
        rows=tuple(data_rows),
        alignments=tuple(alignments),
        header_rows=frozenset(marked_rows),
        header_columns=frozenset({0, *(header_columns or ())}),
    )
