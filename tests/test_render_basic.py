from pathlib import Path

from docx import Document as DocxReader

from MarkNote import markdown_parser
from MarkNote.model import Document, Heading, Image, Run, Table
from MarkNote.renderer_docx import render_document
from MarkNote.theme import Theme

SAMPLE = """# Introduction

Paragraph with a [link](https://example.com) and `code`.

- [x] done
- [ ] open

```python
print("hi")
```

>>>## Details
hidden body
<<<

{columns}
left side
{---}
right side
{/columns}

{table}
{header:0}
| Name | Qty |
|:-----|----:|
| ax | 2 |
{/table}
"""


def _xml(reader) -> str:
    return "\n".join(p._p.xml for p in reader.paragraphs)


def test_render_creates_docx(tmp_path: Path):
    doc = Document(blocks=(Heading(level=1, runs=(Run("Introduction"),)),))
    output_file = tmp_path / "out" / "report.docx"
    render_document(doc, output_file)
    assert output_file.exists()
    assert output_file.stat().st_size > 0


def test_render_full_sample(tmp_path: Path):
    out = tmp_path / "sample.docx"
    state = render_document(markdown_parser.parse_markdown(SAMPLE), out)
    assert state.missing_images == []

    reader = DocxReader(out)
    xml = _xml(reader)
    assert "Introduction" in xml
    assert "<w:hyperlink" in xml
    assert 'print("hi")' in xml or "print(&quot;hi&quot;)" in xml
    assert "▾ " in xml
    assert "hidden body" in xml
    assert "☑ " in xml and "☐ " in xml

    assert len(reader.tables) == 2
    columns, table = reader.tables
    assert columns.cell(0, 0).text == "left side"
    assert columns.cell(0, 1).text == "right side"
    assert table.cell(0, 0).text == "Name"
    assert table.cell(1, 1).text == "2"


def test_table_header_cells_are_bold(tmp_path: Path):
    block = Table(
        headers=("a", "b"),
        rows=(("1", "2"),),
        alignments=("left", "right"),
    )
    out = tmp_path / "table.docx"
    render_document(Document(blocks=(block,)), out)
    table = DocxReader(out).tables[0]
    assert table.cell(0, 1).paragraphs[0].runs[0].bold
    assert table.cell(1, 0).paragraphs[0].runs[0].bold
    assert not table.cell(1, 1).paragraphs[0].runs[0].bold


def test_missing_and_remote_images_get_placeholders(tmp_path: Path):
    doc = Document(
        blocks=(
            Image(url="nowhere.png", alt="Local"),
            Image(url="https://example.com/a.png", alt="Remote"),
        )
    )
    out = tmp_path / "img.docx"
    state = render_document(doc, out, asset_root=tmp_path)
    assert state.missing_images == ["nowhere.png", "https://example.com/a.png"]
    xml = _xml(DocxReader(out))
    assert "[Missing image: nowhere.png]" in xml
    assert "[Image: Remote]" in xml


def test_theme_font_size_is_used(tmp_path: Path):
    out = tmp_path / "theme.docx"
    theme = Theme(font_size=10)
    doc = markdown_parser.parse_markdown("plain", font_size=theme.font_size)
    render_document(doc, out, theme=theme)
    run = DocxReader(out).paragraphs[0].runs[0]
    assert run.font.size.pt == 10
