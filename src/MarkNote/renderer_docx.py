from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable

from docx import Document as DocxDocument
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Cm, Inches
from markdown_it.common.normalize_url import normalizeLink, validateLink

from . import docx_format
from .model import (
    Block,
    Blockquote,
    Bullet,
    Checkbox,
    CodeBlock,
    Columns,
    Document,
    Heading,
    HorizontalRule,
    Image,
    ListItem,
    Numbered,
    Paragraph,
    Run,
    Table,
    ToggleHeading,
)
from .theme import Theme

logger = logging.getLogger(__name__)

PIXELS_PER_INCH = 96
TOGGLE_MARKER = "▾ "


@dataclass
class RenderState:
    theme: Theme = field(default_factory=Theme)
    asset_root: Path | None = None
    missing_images: list[str] = field(default_factory=list)


def render_document(
    doc: Document, output_path: str | Path, asset_root: Path | None = None, theme: Theme | None = None
) -> RenderState:
    output_path = Path(output_path)
    state = RenderState(theme=theme or Theme(), asset_root=asset_root)
    docx = DocxDocument()
    docx_format.apply_page_layout(docx)

    for block in doc.blocks:
        _dispatch_block(docx, block, state)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    docx.save(output_path)
    return state


def _dispatch_block(container, block: Block, state: RenderState) -> None:
    """Render one block into ``container`` (the document body or a table cell)."""
    if isinstance(block, Paragraph):
        _render_paragraph(container, block, state)
    elif isinstance(block, Heading):
        _render_heading(container, block.level, block.runs, state)
    elif isinstance(block, CodeBlock):
        _render_code_block(container, block, state)
    elif isinstance(block, Blockquote):
        _render_blockquote(container, block, state)
    elif isinstance(block, ListItem):
        _render_list_item(container, block, state)
    elif isinstance(block, HorizontalRule):
        _render_horizontal_rule(container)
    elif isinstance(block, Image):
        _render_image(container, block, state)
    elif isinstance(block, ToggleHeading):
        _render_toggle(container, block, state)
    elif isinstance(block, Columns):
        _render_columns(container, block, state)
    elif isinstance(block, Table):
        _render_table(container, block, state)
    else:
        raise TypeError(f"Unsupported block type: {type(block).__name__}")


def _add_runs(paragraph, runs: Iterable[Run], state: RenderState, **defaults) -> None:
    for source in runs:
        run = paragraph.add_run(source.text)
        docx_format.set_run_font(run, source, state.theme, **defaults)
        if source.link:
            _wrap_hyperlink(paragraph, run, source.link)


def _wrap_hyperlink(paragraph, run, target: str) -> None:
    if not validateLink(target):
        logger.debug("Rendering link without target, rejected URL: %s", target)
        return
    r_id = paragraph.part.relate_to(normalizeLink(target), RELATIONSHIP_TYPE.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)
    hyperlink.append(run._r)
    paragraph._p.append(hyperlink)


def _render_paragraph(container, block: Paragraph, state: RenderState) -> None:
    paragraph = container.add_paragraph()
    _add_runs(paragraph, block.runs, state, color="text")
    docx_format.apply_body_paragraph_format(paragraph, state.theme, alignment=block.alignment)


def _render_heading(container, level: int, runs, state: RenderState, prefix: str = ""):
    paragraph = container.add_paragraph()
    size = docx_format.heading_size(state.theme, level)
    if prefix:
        _add_runs(paragraph, [Run(prefix, font_size=state.theme.font_size)], state, size=size, color="heading")
    _add_runs(paragraph, runs, state, size=size, bold=True, color="heading")
    docx_format.apply_heading_format(paragraph, state.theme, level)
    return paragraph


def _render_code_block(container, block: CodeBlock, state: RenderState) -> None:
    paragraph = container.add_paragraph()
    if block.language:
        label = paragraph.add_run(f"[{block.language}]\n")
        source = Run(label.text, font_size=state.theme.font_size * 0.75, code=True, color="gray")
        docx_format.set_run_font(label, source, state.theme)
    run = paragraph.add_run(block.code)
    source = Run(block.code, font_size=state.theme.font_size * 0.9, code=True, color="code")
    docx_format.set_run_font(run, source, state.theme)
    docx_format.apply_body_paragraph_format(paragraph, state.theme)
    fill = state.theme.color("code_background")
    if fill:
        docx_format.shade_paragraph(paragraph, fill)


def _render_blockquote(container, block: Blockquote, state: RenderState) -> None:
    paragraph = container.add_paragraph()
    _add_runs(paragraph, block.runs, state, italic=True, color="blockquote")
    docx_format.apply_body_paragraph_format(paragraph, state.theme)
    docx_format.apply_indent(paragraph, docx_format.QUOTE_INDENT_CM)


def _list_marker(style) -> str:
    if isinstance(style, Checkbox):
        return "☑ " if style.checked else "☐ "
    if isinstance(style, Numbered):
        return f"{style.number}. "
    if isinstance(style, Bullet):
        return "• "
    raise TypeError(f"Unsupported list style: {type(style).__name__}")


def _render_list_item(container, block: ListItem, state: RenderState) -> None:
    paragraph = container.add_paragraph()
    marker = Run(_list_marker(block.style), font_size=state.theme.font_size)
    _add_runs(paragraph, [marker], state, color="gray")
    checked = isinstance(block.style, Checkbox) and block.style.checked
    runs = block.runs
    if checked:
        runs = [_struck(run) for run in runs]
    _add_runs(paragraph, runs, state, color="text")
    docx_format.apply_body_paragraph_format(paragraph, state.theme)
    docx_format.apply_indent(paragraph, docx_format.LIST_INDENT_CM * (block.indent + 1))


def _struck(run: Run) -> Run:
    return replace(run, strikethrough=True, color=run.color or "gray")


def _render_horizontal_rule(container) -> None:
    paragraph = container.add_paragraph()
    paragraph.add_run("─" * 40)
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.paragraph_format.first_line_indent = Cm(0)


def _resolve_image_path(block: Image, state: RenderState) -> Path:
    image_path = Path(block.url)
    if state.asset_root:
        candidate = state.asset_root / block.url
        if candidate.exists():
            image_path = candidate
    return image_path


def _render_image(container, block: Image, state: RenderState) -> None:
    paragraph = container.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run()
    if block.url.startswith(("http://", "https://")):
        logger.warning("Remote images are not downloaded: %s", block.url)
        run.add_text(f"[Image: {block.alt or block.url}]")
        state.missing_images.append(block.url)
        return

    image_path = _resolve_image_path(block, state)
    width = Inches(block.width / PIXELS_PER_INCH) if block.width else None
    height = Inches(block.height / PIXELS_PER_INCH) if block.height else None
    try:
        run.add_picture(str(image_path), width=width, height=height)
    except (FileNotFoundError, UnrecognizedImageError):
        logger.warning("Could not embed image %s", image_path)
        run.add_text(f"[Missing image: {image_path}]")
        state.missing_images.append(block.url)
    if block.alt:
        caption = container.add_paragraph(block.alt)
        caption.alignment = WD_ALIGN_PARAGRAPH.CENTER


def _render_toggle(container, block: ToggleHeading, state: RenderState) -> None:
    _render_heading(container, block.level, block.title, state, prefix=TOGGLE_MARKER)
    for inner in block.content:
        _dispatch_block(container, inner, state)


def _render_columns(container, block: Columns, state: RenderState) -> None:
    if not block.content:
        return
    table = container.add_table(rows=1, cols=len(block.content))
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    _clear_table_borders(table)
    for index, column in enumerate(block.content):
        cell = table.cell(0, index)
        placeholder = cell.paragraphs[0]
        for inner in column:
            _dispatch_block(cell, inner, state)
        # a cell must keep at least one paragraph
        if len(cell.paragraphs) > 1 and not placeholder.text:
            placeholder._p.getparent().remove(placeholder._p)


def _render_table(container, block: Table, state: RenderState) -> None:
    col_count = max([len(block.headers)] + [len(row) for row in block.rows])
    table = container.add_table(rows=1 + len(block.rows), cols=col_count)
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.LEFT
    for r_idx, row in enumerate([block.headers, *block.rows]):
        for c_idx, cell_text in enumerate(row):
            if c_idx >= col_count:
                break
            paragraph = table.cell(r_idx, c_idx).paragraphs[0]
            is_header = r_idx in block.header_rows or c_idx in block.header_columns
            source = Run(cell_text, font_size=state.theme.font_size, bold=is_header)
            run = paragraph.add_run(cell_text)
            docx_format.set_run_font(run, source, state.theme, color="heading" if is_header else "text")
            if c_idx < len(block.alignments):
                alignment = docx_format.PARAGRAPH_ALIGNMENTS[block.alignments[c_idx]]
                if alignment is not None:
                    paragraph.alignment = alignment
    container.add_paragraph()


def _clear_table_borders(table) -> None:
    tbl = table._element
    tbl_pr = tbl.tblPr
    if tbl_pr is None:
        return
    for child in list(tbl_pr):
        if child.tag == qn("w:tblBorders"):
            tbl_pr.remove(child)
    borders = OxmlElement("w:tblBorders")
    for border_name in ("top", "left", "bottom", "right", "insideH", "insideV"):
        border = OxmlElement(f"w:{border_name}")
        border.set(qn("w:val"), "nil")
        borders.append(border)
    tbl_pr.append(borders)
