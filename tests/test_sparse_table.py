import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate import sparse_table
from isa_crate.model import Comment
from isa_crate.sparse_table import Remark, SparseTable, rows_from_text, rows_to_text

LABELS = ["Type", "Type Term Accession Number", "Type Term Source REF"]


def test_absent_is_distinct_from_empty():
    table = SparseTable.create(keys=LABELS, length=2)
    table.set("Type", 0, "")
    assert table.try_get("Type", 0) == ""
    assert table.try_get("Type", 1) is None
    assert table.get_or_default("fallback", "Type", 1) == "fallback"
    assert table.get_or_default("fallback", "Type", 0) == ""


def test_module_level_helpers():
    table = SparseTable.create(keys=LABELS)
    sparse_table.set_value(table, "Type", 3, "x")
    assert sparse_table.try_get(table, "Type", 3) == "x"
    assert sparse_table.get_or_default(table, "", "Type", 4) == ""


def test_empty_comments():
    table = SparseTable(comment_keys=["A", "B"])
    assert table.get_empty_comments() == [Comment(name="A"), Comment(name="B")]


def test_from_rows_reads_block():
    rows = [
        ["Study Design Type", "time series", "", "dose response"],
        ["Study Design Type Term Accession Number", "EFO:0000001"],
        ["#a remark"],
        ["Comment[Notes]", "first", "second"],
        ["Study Design Type Term Source REF", "EFO"],
        ["STUDY PUBLICATIONS"],
        ["never read"],
    ]
    next_key, line_number, remarks, table = SparseTable.from_rows(rows, LABELS, 10, prefix="Study Design")
    assert next_key == "STUDY PUBLICATIONS"
    assert line_number == 16
    assert remarks == [Remark(13, "a remark")]
    assert table.column_count == 3
    assert table.comment_keys == ["Notes"]
    assert table.matrix == {
        ("Type", 0): "time series",
        ("Type", 2): "dose response",
        ("Type Term Accession Number", 0): "EFO:0000001",
        ("Notes", 0): "first",
        ("Notes", 1): "second",
        ("Type Term Source REF", 0): "EFO",
    }


def test_from_rows_until_exhausted():
    rows = [["Type", "a"], ["Comment[<Angle>]", "b"]]
    next_key, line_number, remarks, table = SparseTable.from_rows(rows, LABELS, 0)
    assert next_key is None
    assert line_number == 2
    assert remarks == []
    assert table.comment_keys == ["Angle"]
    assert table.try_get("Type", 0) == "a"


def test_to_rows_skips_reserved_column():
    table = SparseTable.create(keys=["Type"], length=3)
    table.set("Type", 1, "a")
    table.set("Type", 2, "b")
    table.comment_keys.append("Notes")
    table.set("Notes", 2, "n")
    assert table.to_rows("Study Design") == [
        ["Study Design Type", "a", "b"],
        ["Comment[Notes]", "", "n"],
    ]
    assert table.to_rows() == [["Type", "a", "b"], ["Comment[Notes]", "", "n"]]


def test_text_helpers():
    text = "Study Design Type\ta\tb\n\nComment[Notes]\t\tn\t\t\n"
    rows = rows_from_text(text)
    assert rows == [["Study Design Type", "a", "b"], ["Comment[Notes]", "", "n", "", ""]]
    assert rows_to_text(rows) == "Study Design Type\ta\tb\nComment[Notes]\t\tn\n"
    assert rows_to_text([]) == ""
