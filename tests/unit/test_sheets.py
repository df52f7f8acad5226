"""Tests for the workbook stores."""

import pytest

from audience_manager.sheets import CsvWorkbook, InMemoryWorkbook


class TestInMemoryWorkbook:
    """Tests for InMemoryWorkbook."""

    @pytest.fixture
    def workbook(self):
        return InMemoryWorkbook(
            {
                "Audiences": [
                    ["ID", "Name"],
                    ["1", "First"],
                    ["2", "Second", "extra"],
                    ["", ""],
                ]
            }
        )

    def test_cell_access_is_one_based(self, workbook):
        """Test rows and columns start at 1."""
        assert workbook.get_cell_value("Audiences", 1, 1) == "ID"
        assert workbook.get_cell_value("Audiences", 3, 3) == "extra"

    def test_missing_cells(self, workbook):
        """Test out-of-range cells are blank and missing sheets are None."""
        assert workbook.get_cell_value("Audiences", 10, 1) == ""
        assert workbook.get_cell_value("Audiences", 2, 9) == ""
        assert workbook.get_cell_value("Nope", 1, 1) is None

    def test_last_row_and_column_ignore_blanks(self, workbook):
        """Test trailing blank rows and cells are not counted."""
        assert workbook.last_row("Audiences") == 3
        assert workbook.last_column("Audiences") == 3
        assert workbook.last_row("Nope") == 0

    def test_get_range_data_pads_rows(self, workbook):
        """Test an open range spans to the last row and column."""
        assert workbook.get_range_data("Audiences", 2, 1) == [
            ["1", "First", ""],
            ["2", "Second", "extra"],
        ]
        assert workbook.get_range_data("Audiences", 2, 2, 1, 1) == [["First"]]
        assert workbook.get_range_data("Nope", 1, 1) == []
        assert workbook.get_range_data("Audiences", 5, 1) == []

    def test_set_creates_sheet(self, workbook):
        """Test writing to a new sheet creates it."""
        workbook.set_cell_value("Log", 2, 2, "hello")
        assert workbook.has_sheet("Log")
        assert workbook.get_sheet("Log") == [[], ["", "hello"]]

    def test_set_rejects_zero_positions(self, workbook):
        """Test positions below 1 are refused."""
        with pytest.raises(IndexError):
            workbook.set_cell_value("Audiences", 0, 1, "x")

    def test_set_values_in_defined_range(self, workbook):
        """Test a block is written from its top-left cell."""
        workbook.set_values_in_defined_range("Audiences", 2, 2, [["A", "B"], ["C"]])
        assert workbook.get_range_data("Audiences", 2, 1, 2, 3) == [
            ["1", "A", "B"],
            ["2", "C", "extra"],
        ]

    def test_append_below_last_row(self, workbook):
        """Test appending writes below the last non-blank row."""
        workbook.append_to_defined_range("Audiences", 2, 1, [["3", "Third"]])
        assert workbook.get_cell_value("Audiences", 4, 2) == "Third"

    def test_append_to_empty_sheet_starts_at_row(self, workbook):
        """Test appending to an empty sheet starts at the given row."""
        workbook.append_to_defined_range("Rules", 2, 1, [["a"], ["b"]])
        assert workbook.get_sheet("Rules") == [[], ["a"], ["b"]]

    def test_clear_defined_range(self, workbook):
        """Test clearing blanks cells from the given position on."""
        workbook.clear_defined_range("Audiences", 2, 2)
        assert workbook.get_sheet("Audiences")[:3] == [
            ["ID", "Name"],
            ["1", ""],
            ["2", "", ""],
        ]
        assert workbook.last_row("Audiences") == 3

        workbook.clear_defined_range("Missing", 1, 1)
        assert not workbook.has_sheet("Missing")

    def test_find_and_replace_whole_cells(self, workbook):
        """Test only exact cell matches are replaced."""
        workbook.set_cell_value("Audiences", 4, 1, "11")
        assert workbook.find_and_replace("Audiences", "1", "100") == 1
        assert workbook.get_cell_value("Audiences", 2, 1) == "100"
        assert workbook.get_cell_value("Audiences", 4, 1) == "11"

    def test_initial_content_is_copied(self):
        """Test the workbook does not alias the given rows."""
        rows = [["a"]]
        workbook = InMemoryWorkbook({"S": rows})
        workbook.set_cell_value("S", 1, 1, "b")
        assert rows == [["a"]]


class TestCsvWorkbook:
    """Tests for CsvWorkbook."""

    def test_load_sheets_by_file_name(self, tmp_path):
        """Test each CSV file becomes a sheet named after its stem."""
        (tmp_path / "Audiences.csv").write_text("ID,Name\n1,First\n", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        workbook = CsvWorkbook(tmp_path)

        assert workbook.sheet_names == ["Audiences"]
        assert workbook.get_cell_value("Audiences", 2, 2) == "First"

    def test_missing_directory_is_empty(self, tmp_path):
        """Test a missing directory loads as an empty workbook."""
        workbook = CsvWorkbook(tmp_path / "missing")
        assert workbook.sheet_names == []

    def test_save_round_trip(self, tmp_path):
        """Test saved sheets load back with spreadsheet booleans."""
        workbook = CsvWorkbook(tmp_path / "book")
        workbook.set_values_in_defined_range(
            "Rules", 1, 1, [["42", 0, "U1:Product", "EQUALS", "a,b", True]]
        )
        workbook.set_cell_value("Rules", 5, 1, "")
        workbook.save()

        text = (tmp_path / "book" / "Rules.csv").read_text(encoding="utf-8")
        assert text.splitlines() == ['42,0,U1:Product,EQUALS,"a,b",TRUE']

        reloaded = CsvWorkbook(tmp_path / "book")
        assert reloaded.get_range_data("Rules", 1, 1) == [
            ["42", "0", "U1:Product", "EQUALS", "a,b", "TRUE"]
        ]
