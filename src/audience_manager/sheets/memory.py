"""In-memory workbook."""

import logging
from typing import Optional

from audience_manager.sheets.protocol import CellValue, Rows

logger = logging.getLogger("audience_manager.sheets.memory")


def _is_blank(value: CellValue) -> bool:
    return value is None or value == ""


class InMemoryWorkbook:
    """A workbook held as lists of rows per sheet.

    Writing to a sheet that does not exist creates it. Reading from one
    returns nothing.
    """

    def __init__(self, sheets: Optional[dict[str, Rows]] = None):
        """Initialize the workbook.

        Args:
            sheets: Initial content, sheet name to rows (copied).
        """
        self._sheets: dict[str, Rows] = {
            name: [list(row) for row in rows] for name, rows in (sheets or {}).items()
        }

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def has_sheet(self, sheet_name: str) -> bool:
        return sheet_name in self._sheets

    def get_sheet(self, sheet_name: str) -> Rows:
        """Return a copy of a sheet's rows, trailing blanks included."""
        return [list(row) for row in self._sheets.get(sheet_name, [])]

    def last_row(self, sheet_name: str) -> int:
        """1-based index of the last row holding a value, 0 if none."""
        rows = self._sheets.get(sheet_name, [])
        for index in range(len(rows), 0, -1):
            if any(not _is_blank(value) for value in rows[index - 1]):
                return index
        return 0

    def last_column(self, sheet_name: str) -> int:
        """1-based index of the last column holding a value, 0 if none."""
        last = 0
        for row in self._sheets.get(sheet_name, []):
            for index in range(len(row), last, -1):
                if not _is_blank(row[index - 1]):
                    last = index
                    break
        return last

    def get_cell_value(self, sheet_name: str, row: int, col: int) -> Optional[CellValue]:
        rows = self._sheets.get(sheet_name)
        if rows is None:
            return None
        if row > len(rows) or col > len(rows[row - 1]):
            return ""
        return rows[row - 1][col - 1]

    def set_cell_value(self, sheet_name: str, row: int, col: int, value: CellValue) -> None:
        self._set(self._sheets.setdefault(sheet_name, []), row, col, value)

    def get_range_data(
        self,
        sheet_name: str,
        row: int,
        col: int,
        num_rows: int = 0,
        num_cols: int = 0,
    ) -> Rows:
        if sheet_name not in self._sheets:
            return []

        num_rows = num_rows or self.last_row(sheet_name) - row + 1
        num_cols = num_cols or self.last_column(sheet_name) - col + 1
        if num_rows <= 0 or num_cols <= 0:
            return []

        return [
            [
                self.get_cell_value(sheet_name, row + r, col + c)
                for c in range(num_cols)
            ]
            for r in range(num_rows)
        ]

    def set_values_in_defined_range(
        self, sheet_name: str, row: int, col: int, values: Rows
    ) -> None:
        rows = self._sheets.setdefault(sheet_name, [])
        for r, values_row in enumerate(values):
            for c, value in enumerate(values_row):
                self._set(rows, row + r, col + c, value)

    def append_to_defined_range(
        self, sheet_name: str, row: int, col: int, values: Rows
    ) -> None:
        last_row = self.last_row(sheet_name)
        start_row = last_row + 1 if last_row else row
        self.set_values_in_defined_range(sheet_name, start_row, col, values)

    def clear_defined_range(
        self,
        sheet_name: str,
        row: int,
        col: int,
        num_rows: int = 0,
        num_cols: int = 0,
    ) -> None:
        rows = self._sheets.get(sheet_name)
        if rows is None:
            return

        end_row = row + num_rows if num_rows else len(rows) + 1
        for r in range(row, min(end_row, len(rows) + 1)):
            cells = rows[r - 1]
            end_col = col + num_cols if num_cols else len(cells) + 1
            for c in range(col, min(end_col, len(cells) + 1)):
                cells[c - 1] = ""

    def find_and_replace(self, sheet_name: str, find: str, replace: str) -> int:
        count = 0
        for cells in self._sheets.get(sheet_name, []):
            for index, value in enumerate(cells):
                if not _is_blank(value) and str(value) == find:
                    cells[index] = replace
                    count += 1
        if count:
            logger.debug(f"Replaced {count} cell(s) '{find}' in '{sheet_name}'")
        return count

    @staticmethod
    def _set(rows: Rows, row: int, col: int, value: CellValue) -> None:
        if row < 1 or col < 1:
            raise IndexError(f"Cell positions are 1-based, got ({row}, {col})")
        while len(rows) < row:
            rows.append([])
        cells = rows[row - 1]
        while len(cells) < col:
            cells.append("")
        cells[col - 1] = "" if value is None else value
