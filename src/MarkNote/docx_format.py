from __future__ import annotations

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Cm, Pt, RGBColor

from .model import Run
from .theme import Theme

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297

MARGIN_CM = 2.0
LIST_INDENT_CM = 0.63
QUOTE_INDENT_CM = 0.8
SPACE_AFTER_SCALE = 0.5

HEADING_SCALES = {1: 2.0, 2: 1.75, 3: 1.5, 4: 1.25, 5: 1.1, 6: 1.0}

PARAGRAPH_ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "none": None,
}


def apply_page_layout(doc) -> None:
    """Apply A4 page setup with even margins."""
    section = doc.sections[0]
    section.page_height = Cm(A4_HEIGHT_MM / 10)
    section.page_width = Cm(A4_WIDTH_MM / 10)
    section.left_margin = Cm(MARGIN_CM)
    section.right_margin = Cm(MARGIN_CM)
    section.top_margin = Cm(MARGIN_CM)
    section.bottom_margin = Cm(MARGIN_CM)


def heading_size(theme: Theme, level: int) -> float:
    return theme.font_size * HEADING_SCALES.get(level, 1.0)


def set_run_font(run, source: Run, theme: Theme, *, size: float | None = None, bold: bool = False,
                 italic: bool = False, color: str | None = None) -> None:
    """Map a resolved :class:`Run` onto a python-docx run.

    ``size``, ``bold``, ``italic`` and ``color`` are block-level defaults; the
    run's own attributes take precedence where it carries them.
    """
    run.font.name = theme.code_font_name if source.code else theme.font_name
    font_size = source.font_size
    if size is not None and source.font_size == theme.font_size:
        font_size = size
    run.font.size = Pt(font_size)
    run.bold = source.bold or bold
    run.italic = source.italic or italic
    run.font.underline = source.underline
    run.font.strike = source.strikethrough
    hex_color = theme.color(source.color) or theme.color(color)
    if hex_color:
        run.font.color.rgb = RGBColor.from_string(hex_color)
    background = theme.color(source.background)
    if background:
        shade_run(run, background)


def shade_run(run, fill: str) -> None:
    r_pr = run._r.get_or_add_rPr()
    r_pr.append(_shading(fill))


def shade_paragraph(paragraph, fill: str) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    p_pr.append(_shading(fill))


def _shading(fill: str):
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    return shd


def apply_body_paragraph_format(paragraph, theme: Theme, alignment: str = "left") -> None:
    paragraph.alignment = PARAGRAPH_ALIGNMENTS.get(alignment)
    paragraph.paragraph_format.space_before = Pt(0)
    paragraph.paragraph_format.space_after = Pt(theme.font_size * SPACE_AFTER_SCALE)
    paragraph.paragraph_format.first_line_indent = Cm(0)


def apply_heading_format(paragraph, theme: Theme, level: int) -> None:
    paragraph.alignment = WD_ALIGN_PARAGRAPH.LEFT
    paragraph.paragraph_format.space_before = Pt(heading_size(theme, level) * SPACE_AFTER_SCALE)
    paragraph.paragraph_format.space_after = Pt(theme.font_size * SPACE_AFTER_SCALE)
    paragraph.paragraph_format.keep_with_next = True


def apply_indent(paragraph, indent_cm: float) -> None:
    paragraph.paragraph_format.left_indent = Cm(indent_cm)
    paragraph.paragraph_format.first_line_indent = Cm(0)
