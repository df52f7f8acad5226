"""Tabular store (workbook) access."""

from audience_manager.sheets.csv_workbook import CsvWorkbook
from audience_manager.sheets.memory import InMemoryWorkbook
from audience_manager.sheets.protocol import TableStore

__all__ = ["CsvWorkbook", "InMemoryWorkbook", "TableStore"]
