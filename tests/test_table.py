from MarkNote.table_parser import cell_alignment, is_separator_row, is_table_row, parse_table, split_row


def test_row_predicates():
    assert is_table_row("| a | b |")
    assert is_table_row("a|b")
    assert not is_table_row("| |")
    assert not is_table_row("plain")
    assert is_separator_row("|---|:-:|")
    assert is_separator_row("---|---")
    assert not is_separator_row("| a | b |")


def test_split_row_keeps_empty_cells():
    assert split_row("| a |  | c |") == ["a", "", "c"]
    assert split_row("a|b") == ["a", "b"]


def test_cell_alignment():
    assert cell_alignment(":---") == "left"
    assert cell_alignment(":-:") == "center"
    assert cell_alignment("--:") == "right"
    assert cell_alignment("---") == "none"


def test_missing_separator_returns_none():
    assert parse_table(["a|b", "c|d"]) is None
    assert parse_table(["---|---", "a|b"]) is None


def test_alignments_follow_header_count():
    padded = parse_table(["a|b|c", "---|:--"])
    assert padded.alignments == ("none", "left", "none")
    truncated = parse_table(["| a | b |", "|---|---|--:|"])
    assert truncated.alignments == ("none", "none")


def test_header_rows_are_shifted_past_separator():
    rows = ["h1|h2", "---|---", "a|b", "c|d"]
    table = parse_table(rows, header_rows={0, 3}, header_columns={1})
    assert table.rows == (("a", "b"), ("c", "d"))
    assert table.header_rows == frozenset({0, 2})
    assert table.header_columns == frozenset({0, 1})


def test_header_defaults():
    table = parse_table(["a|b", "---|---"], header_rows={1})
    assert table.header_rows == frozenset({0})
    assert table.header_columns == frozenset({0})
    assert table.rows == ()


def test_spaced_separator_with_many_columns():
    assert is_separator_row("| --- | :---: | ---: |")
    table = parse_table(["| a | b | c |", "| --- | :---: | ---: |", "| 1 | 2 | 3 |"])
    assert table.alignments == ("none", "center", "right")
    assert table.rows == (("1", "2", "3"),)


def test_header_row_may_look_like_a_separator():
    table = parse_table(["---|---", ":-:|---", "1|2"])
    assert table.headers == ("---", "---")
    assert table.alignments == ("center", "none")
    assert table.rows == (("1", "2"),)


def test_markers_add_to_first_row_and_column():
    table = parse_table(["a|b", "---|---", "1|2"], header_rows={2}, header_columns={1})
    assert table.header_rows == frozenset({0, 1})
    assert table.header_columns == frozenset({0, 1})
