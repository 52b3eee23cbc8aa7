import csv
import logging
from typing import IO, Iterable, List, Sequence

from openpyxl import Workbook  # type: ignore[import]
from openpyxl.styles import Font  # type: ignore[import]
from openpyxl.utils import get_column_letter  # type: ignore[import]
from openpyxl.workbook.child import (  # type: ignore[import]
    INVALID_TITLE_REGEX,
)

from tabview.column import Column
from tabview.constants import Row

logger = logging.getLogger(__name__)

# Excel limits sheet titles to 31 characters.
MAX_SHEET_TITLE = 31
MAX_COLUMN_WIDTH = 60
DEFAULT_SHEET_TITLE = "Export"


def sheet_title_text(title: str) -> str:
    """Make a valid worksheet title.

    Characters Excel rejects (`/ \\ ? * [ ] :`) become `_` and the result
    is cut to 31 characters.
    """
    title = INVALID_TITLE_REGEX.sub("_", title or "")[0:MAX_SHEET_TITLE]
    return title or DEFAULT_SHEET_TITLE


def export_table(rows: Iterable[Row], columns: Sequence[Column]) -> List[list]:
    """Compute the cells of an export: a header line and one line per row."""
    result: List[list] = [[c.title for c in columns]]
    for row in rows:
        result.append([c.export_text(row) for c in columns])
    return result


def export_rows_csv(
    rows: Iterable[Row], columns: Sequence[Column], stream: IO[str]
) -> int:
    """Write rows as CSV.

    Args:
        rows: The rows to write, in order.
        columns: The columns to include, in order.
        stream: A text stream; open files should use `newline=""`.

    Returns:
        The number of rows written, without the header.
    """
    lines = export_table(rows, columns)
    writer = csv.writer(stream)
    writer.writerows(lines)
    logger.debug("Exported %d rows as CSV", len(lines) - 1)
    return len(lines) - 1


def export_rows_xlsx(
    rows: Iterable[Row],
    columns: Sequence[Column],
    path: str,
    sheet_title: str = DEFAULT_SHEET_TITLE,
) -> int:
    """Write rows to an Excel workbook with a single worksheet.

    The header is bold and frozen; the width of each column follows its
    longest value.

    Returns:
        The number of rows written, without the header.
    """
    lines = export_table(rows, columns)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title_text(sheet_title)
    for line in lines:
        ws.append(line)

    bold = Font(bold=True)
    for cell in ws[1]:
        cell.font = bold
    ws.freeze_panes = "A2"

    for col_idx in range(1, len(columns) + 1):
        width = max(len(str(line[col_idx - 1])) for line in lines)
        col_letter = get_column_letter(col_idx)
        ws.column_dimensions[col_letter].width = min(
            width + 2, MAX_COLUMN_WIDTH
        )

    wb.save(path)
    logger.debug("Exported %d rows to %s", len(lines) - 1, path)
    return len(lines) - 1
