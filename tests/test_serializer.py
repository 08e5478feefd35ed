import textwrap

from MarkNote import markdown_parser, serializer
from MarkNote.model import Document, Paragraph, Run, Table


def test_document_survives_serialization():
    source = textwrap.dedent(
        """\
        # Title

        Some **bold** and {color:red}red{/color} text.

        - one
        - [x] two

        ```py
        x = 1
        ```

        >>>## More
        inside
        <<<"""
    )
    doc = markdown_parser.parse_markdown(source)
    text = serializer.to_markdown(doc)
    assert text == source
    assert markdown_parser.parse_markdown(text) == doc


def test_run_markup():
    assert serializer.run_to_markdown(Run("x", code=True, font_size=14.4)) == "`x`"
    assert serializer.run_to_markdown(Run("docs", link="https://x.io", color="link", underline=True)) == (
        "[docs](https://x.io)"
    )
    url = "https://x.io"
    assert serializer.run_to_markdown(Run(url, link=url, color="link", underline=True)) == url
    assert serializer.run_to_markdown(Run("big", font_size=20)) == "{size:20}big{/size}"
    assert serializer.run_to_markdown(Run("hi", color="black", background="yellow")) == "==hi=="
    assert serializer.run_to_markdown(Run("u", underline=True, strikethrough=True)) == "<u>~~u~~</u>"


def test_aligned_paragraph():
    block = Paragraph(runs=(Run("x"),), alignment="center")
    assert serializer.block_to_markdown(block) == "{align:center}x{/align}"


def test_table_markup():
    table = Table(
        headers=("a", "b"),
        rows=(("1", "2"), ("3", "4")),
        alignments=("none", "center"),
        header_rows=frozenset({0, 2}),
        header_columns=frozenset({0, 1}),
    )
    text = serializer.block_to_markdown(table)
    assert text == "\n".join(
        [
            "{table}",
            "{header:1}",
            "| a | b |",
            "| --- | :---: |",
            "| 1 | 2 |",
            "{header}",
            "| 3 | 4 |",
            "{/table}",
        ]
    )
    assert markdown_parser.parse_markdown(text).blocks == (table,)


def test_empty_document():
    assert serializer.to_markdown(Document()) == ""


def test_adjacent_emphasis_runs_read_back():
    for runs in [
        (Run("a", bold=True), Run("b", italic=True)),
        (Run("a", italic=True), Run("b", bold=True)),
        (Run("a", bold=True), Run("b", bold=True, italic=True)),
    ]:
        text = serializer.runs_to_markdown(runs)
        assert markdown_parser.parse_markdown(text).blocks == (Paragraph(runs=runs),)
    assert serializer.runs_to_markdown((Run("a", bold=True), Run("b", italic=True))) == "**a**_b_"


def test_table_header_markers_survive_serialization():
    source = "{table}\n{header:1}\na|b\n---|---\n1|2\n{header}\n3|4\n{/table}"
    table = markdown_parser.parse_markdown(source).blocks[0]
    assert table.header_rows == frozenset({0, 2})
    assert table.header_columns == frozenset({0, 1})
    assert markdown_parser.parse_markdown(serializer.block_to_markdown(table)).blocks == (table,)
