"""Interface of the tabular store holding the workbook."""

from typing import Any, Optional, Protocol, runtime_checkable

CellValue = Any
Rows = list[list[CellValue]]


@runtime_checkable
class TableStore(Protocol):
    """Named sheets of cells addressed by 1-based row and column."""

    def get_cell_value(self, sheet_name: str, row: int, col: int) -> Optional[CellValue]:
        """Read one cell. Returns None if the sheet does not exist."""
        ...

    def set_cell_value(self, sheet_name: str, row: int, col: int, value: CellValue) -> None:
        """Write one cell."""
        ...

    def get_range_data(
        self,
        sheet_name: str,
        row: int,
        col: int,
        num_rows: int = 0,
        num_cols: int = 0,
    ) -> Rows:
        """Read a rectangular range.

        A zero size extends the range to the last used row or column.
        """
        ...

    def set_values_in_defined_range(
        self, sheet_name: str, row: int, col: int, values: Rows
    ) -> None:
        """Write rows starting at the given cell."""
        ...

    def append_to_defined_range(
        self, sheet_name: str, row: int, col: int, values: Rows
    ) -> None:
        """Write rows after the last used row (or at ``row`` if the sheet is empty)."""
        ...

    def clear_defined_range(
        self,
        sheet_name: str,
        row: int,
        col: int,
        num_rows: int = 0,
        num_cols: int = 0,
    ) -> None:
        """Blank a rectangular range. A zero size extends it to the sheet end."""
        ...

    def find_and_replace(self, sheet_name: str, find: str, replace: str) -> int:
        """Replace whole-cell, case-sensitive matches. Returns the count."""
        ...
