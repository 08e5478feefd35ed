"""Flatten a parsed document back into dialect markup (copy/paste)."""

from __future__ import annotations

from typing import Iterable, List

from .inline_parser import COLOR_NAMES
from .model import (
    DEFAULT_FONT_SIZE,
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

SEPARATOR_CELLS = {"left": ":---", "center": ":---:", "right": "---:", "none": "---"}


def to_markdown(document: Document, font_size: float = DEFAULT_FONT_SIZE) -> str:
    return blocks_to_markdown(document.blocks, font_size=font_size)


def blocks_to_markdown(blocks: Iterable[Block], font_size: float = DEFAULT_FONT_SIZE) -> str:
    parts: List[str] = []
    previous = None
    for block in blocks:
        text = block_to_markdown(block, font_size=font_size)
        if parts:
            # consecutive list items stay in one list
            parts.append("\n" if isinstance(previous, ListItem) and isinstance(block, ListItem) else "\n\n")
        parts.append(text)
        previous = block
    return "".join(parts)


def block_to_markdown(block: Block, font_size: float = DEFAULT_FONT_SIZE) -> str:
    if isinstance(block, Paragraph):
        text = runs_to_markdown(block.runs, font_size)
        if block.alignment != "left":
            return f"{{align:{block.alignment}}}{text}{{/align}}"
        return text
    if isinstance(block, Heading):
        return "#" * block.level + " " + runs_to_markdown(block.runs, font_size)
    if isinstance(block, CodeBlock):
        return f"```{block.language}\n{block.code}\n```"
    if isinstance(block, Blockquote):
        return "> " + runs_to_markdown(block.runs, font_size)
    if isinstance(block, ListItem):
        return "  " * block.indent + _list_marker(block) + " " + runs_to_markdown(block.runs, font_size)
    if isinstance(block, HorizontalRule):
        return "---"
    if isinstance(block, Image):
        size = ""
        if block.width is not None or block.height is not None:
            size = f" ={block.width or ''}x{block.height or ''}"
        return f"![{block.alt}]({block.url}{size})"
    if isinstance(block, ToggleHeading):
        title = runs_to_markdown(block.title, font_size)
        body = blocks_to_markdown(block.content, font_size)
        return f">>>{'#' * block.level} {title}\n{body}\n<<<"
    if isinstance(block, Columns):
        columns = [blocks_to_markdown(column, font_size) for column in block.content]
        return "{columns}\n" + "\n{---}\n".join(columns) + "\n{/columns}"
    if isinstance(block, Table):
        return _table_to_markdown(block)
    raise TypeError(f"Unsupported block type: {type(block).__name__}")


def runs_to_markdown(runs: Iterable[Run], font_size: float = DEFAULT_FONT_SIZE) -> str:
    parts: List[str] = []
    for run in runs:
        text = run_to_markdown(run, font_size)
        # "**a***b*" would read back as bold "a" and a literal "*b*"
        if parts and parts[-1].endswith("*") and text.startswith("*"):
            text = run_to_markdown(run, font_size, marker="_")
        parts.append(text)
    return "".join(parts)


def run_to_markdown(run: Run, font_size: float = DEFAULT_FONT_SIZE, marker: str = "*") -> str:
    if run.code:
        return f"`{run.text}`"
    text = run.text
    if run.link:
        if run.link != text:
            text = f"[{text}]({run.link})"
    if run.strikethrough:
        text = f"~~{text}~~"
    highlighted = run.background == "yellow"
    if highlighted:
        text = f"=={text}=="
    if run.underline and not run.link:
        text = f"<u>{text}</u>"
    if run.bold and run.italic:
        text = f"{marker * 3}{text}{marker * 3}"
    elif run.bold:
        text = f"{marker * 2}{text}{marker * 2}"
    elif run.italic:
        text = f"{marker}{text}{marker}"
    if run.color in COLOR_NAMES and not (highlighted and run.color == "black"):
        text = f"{{color:{run.color}}}{text}{{/color}}"
    if run.font_size != font_size:
        text = f"{{size:{int(run.font_size)}}}{text}{{/size}}"
    return text


def _list_marker(item: ListItem) -> str:
    style = item.style
    if isinstance(style, Checkbox):
        return "- [x]" if style.checked else "- [ ]"
    if isinstance(style, Numbered):
        return f"{style.number}."
    if isinstance(style, Bullet):
        return "-"
    raise TypeError(f"Unsupported list style: {type(style).__name__}")


def _table_row(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _table_to_markdown(table: Table) -> str:
    # row 0 and column 0 are implied headers; only the extra ones need markers
    lines = ["{table}"]
    lines.extend(f"{{header:{column}}}" for column in sorted(table.header_columns - {0}))
    lines.append(_table_row(table.headers))
    lines.append(_table_row(SEPARATOR_CELLS[alignment] for alignment in table.alignments))
    for index, row in enumerate(table.rows, start=1):
        if index in table.header_rows:
            lines.append("{header}")
        lines.append(_table_row(row))
    lines.append("{/table}")
    return "\n".join(lines)
