"""Workbook stored as a directory of CSV files, one per sheet."""

import csv
import logging
from pathlib import Path

from audience_manager.sheets.memory import InMemoryWorkbook

logger = logging.getLogger("audience_manager.sheets.csv_workbook")


class CsvWorkbook(InMemoryWorkbook):
    """Loads ``<sheet>.csv`` files into memory and writes them back on save.

    Every value read from disk is a string. Booleans are written as
    ``TRUE``/``FALSE`` like a spreadsheet export.
    """

    def __init__(self, directory: Path):
        """Initialize the workbook.

        Args:
            directory: Directory holding the sheet files (created on save).
        """
        super().__init__()
        self._directory = Path(directory)
        self.load()

    @property
    def directory(self) -> Path:
        return self._directory

    def load(self) -> None:
        """(Re)load every CSV file of the directory."""
        self._sheets.clear()
        if not self._directory.is_dir():
            logger.warning(f"Workbook directory not found: {self._directory}")
            return

        for path in sorted(self._directory.glob("*.csv")):
            with open(path, newline="", encoding="utf-8") as f:
                self._sheets[path.stem] = [list(row) for row in csv.reader(f)]
            logger.debug(f"Loaded sheet '{path.stem}' ({len(self._sheets[path.stem])} rows)")

    def save(self) -> None:
        """Write every sheet back to its CSV file."""
        self._directory.mkdir(parents=True, exist_ok=True)

        for name, rows in self._sheets.items():
            path = self._directory / f"{name}.csv"
            last_row = self.last_row(name)
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                for cells in rows[:last_row]:
                    writer.writerow([self._format(value) for value in cells])
            logger.debug(f"Saved sheet '{name}' to {path}")

    @staticmethod
    def _format(value) -> str:
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        return "" if value is None else str(value)
