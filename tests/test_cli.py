from pathlib import Path

import pytest
from docx import Document as DocxReader

from MarkNote import cli
from MarkNote.utils import resolve_output_path


def test_cli_renders_docx_next_to_input(tmp_path: Path):
    source = tmp_path / "note.md"
    source.write_text("# Note\n\nBody with **bold**.\n", encoding="utf-8")
    cli.main([str(source)])
    output = tmp_path / "note.docx"
    assert output.exists()
    texts = [p.text for p in DocxReader(output).paragraphs]
    assert "Note" in texts


def test_cli_writes_markdown(tmp_path: Path):
    source = tmp_path / "note.md"
    source.write_text("Body with __bold__\n- item\n", encoding="utf-8")
    out = tmp_path / "clean.md"
    cli.main([str(source), "-o", str(out), "--to", "markdown"])
    assert out.read_text(encoding="utf-8") == "Body with **bold**\n\n- item\n"


def test_cli_uses_theme(tmp_path: Path):
    source = tmp_path / "note.md"
    source.write_text("text\n", encoding="utf-8")
    theme = tmp_path / "theme.yaml"
    theme.write_text("font_size: 11\n", encoding="utf-8")
    out = tmp_path / "themed.docx"
    cli.main([str(source), "-o", str(out), "--theme", str(theme), "--verbose"])
    run = DocxReader(out).paragraphs[0].runs[0]
    assert run.font.size.pt == 11


def test_cli_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        cli.main([str(tmp_path / "absent.md")])


def test_resolve_output_path(tmp_path: Path):
    source = tmp_path / "a.md"
    assert resolve_output_path(source, None) == tmp_path / "a.docx"
    assert resolve_output_path(source, None, "markdown") == tmp_path / "a.out.md"
    assert resolve_output_path(source, str(tmp_path)) == tmp_path / "a.docx"
    assert resolve_output_path(source, "x/b.docx") == Path("x/b.docx")


def test_read_markdown_drops_bom(tmp_path: Path):
    source = tmp_path / "bom.md"
    source.write_bytes("\ufeff# Title\n".encode("utf-8"))
    cli.main([str(source), "--to", "markdown"])
    assert (tmp_path / "bom.out.md").read_text(encoding="utf-8") == "# Title\n"
