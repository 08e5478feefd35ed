"""Block scanner for the extended markdown dialect.

The scanner walks the source line by line. Exactly one :class:`ScanMode` is
active at a time; compound modes (toggle, columns, table, alignment) collect
their lines and hand them back to a nested scan, or to the table parser,
when the region closes or the input ends. Scanning never fails: unclosed
regions are finalized with whatever they collected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Set, Tuple, Union

from .inline_parser import resolve_runs
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
    ParagraphAlignment,
    SourceSpan,
    ToggleHeading,
)
from .table_parser import is_separator_row, is_table_row, parse_table

MAX_NESTING_DEPTH = 16

FENCE = "```"
TOGGLE_CLOSE = "<<<"
ALIGN_CLOSE = "{/align}"
TABLE_OPEN = "{table}"
TABLE_CLOSE = "{/table}"
TABLE_HEADER_ROW = "{header}"
COLUMNS_OPEN = "{columns}"
COLUMNS_BREAK = "{---}"
COLUMNS_CLOSE = "{/columns}"

HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
TOGGLE_OPEN = re.compile(r"^>>>(#{1,6})\s+(.+)$")
IMAGE = re.compile(r"^!\[([^\]]*)\]\(([^)\s]+)(?:\s*=(\d*)x(\d*))?\)$")
CHECKBOX_ITEM = re.compile(r"^(\s*)[-*+]\s+\[([ xX])\]\s+(.+)$")
NUMBERED_ITEM = re.compile(r"^(\s*)(\d+)\.\s+(.+)$")
BULLET_ITEM = re.compile(r"^(\s*)[-*+]\s+(.+)$")
HORIZONTAL_RULES = (re.compile(r"^-{3,}$"), re.compile(r"^\*{3,}$"), re.compile(r"^_{3,}$"))
TABLE_HEADER_COLUMN = re.compile(r"\{header:(\d+)\}")
ALIGN_LINE = re.compile(r"^\{align:(left|center|right)\}(.+?)\{/align\}$")
ALIGN_OPEN = re.compile(r"^\{align:(left|center|right)\}(.*)$")
ALIGN_EXACT = re.compile(r"^\{align:(left|center|right)\}\s*(.+?)\s*\{/align\}$", re.DOTALL)
ALIGN_WRAPPED = re.compile(r"^(.*?)\{align:(left|center|right)\}(.+?)\{/align\}(.*)$", re.DOTALL)


class ScanMode(Enum):
    NORMAL = auto()
    CODE_FENCE = auto()
    TOGGLE = auto()
    COLUMNS = auto()
    TABLE = auto()
    ALIGNMENT = auto()


@dataclass
class _Fence:
    opening: str
    language: str
    start: int
    resume: ScanMode
    lines: List[str] = field(default_factory=list)


@dataclass
class _ToggleRegion:
    level: int
    title: str
    start: int
    lines: List[str] = field(default_factory=list)


@dataclass
class _ColumnsRegion:
    start: int
    columns: List[List[str]] = field(default_factory=lambda: [[]])


@dataclass
class _TableRegion:
    start: int
    rows: List[str] = field(default_factory=list)
    header_rows: Set[int] = field(default_factory=set)
    header_columns: Set[int] = field(default_factory=set)


@dataclass
class _AlignmentRegion:
    alignment: ParagraphAlignment
    start: int
    lines: List[str] = field(default_factory=list)


_Region = Union[_ToggleRegion, _ColumnsRegion, _TableRegion, _AlignmentRegion]


def parse_markdown(text: str, font_size: float = DEFAULT_FONT_SIZE) -> Document:
    return Document(blocks=parse_blocks(text, font_size=font_size))


def parse_blocks(text: str, font_size: float = DEFAULT_FONT_SIZE, depth: int = 0) -> Tuple[Block, ...]:
    return tuple(block for block, _ in scan_blocks(text, font_size=font_size, depth=depth))


def scan_blocks(
    text: str, font_size: float = DEFAULT_FONT_SIZE, depth: int = 0
) -> List[Tuple[Block, SourceSpan]]:
    """Scan ``text`` into top-level blocks paired with the source span each came from."""
    return BlockScanner(text, font_size=font_size, depth=depth).scan()


class BlockScanner:
    """Single-use line scanner; create one per source string."""

    def __init__(self, source: str, font_size: float = DEFAULT_FONT_SIZE, depth: int = 0) -> None:
        self.source = source
        self.font_size = font_size
        self.depth = depth
        self.lines = source.split("\n")
        self.mode = ScanMode.NORMAL
        self.fence: Optional[_Fence] = None
        self.region: Optional[_Region] = None
        self.paragraph: List[str] = []
        self.paragraph_start = 0
        self.paragraph_end = 0
        self.results: List[Tuple[Block, SourceSpan]] = []
        self._offsets = self._line_offsets()

    def scan(self) -> List[Tuple[Block, SourceSpan]]:
        index = 0
        while index < len(self.lines):
            index = self._step(index)
        self._finish()
        return self.results

    # -- line bookkeeping -------------------------------------------------

    def _line_offsets(self) -> List[int]:
        offsets = []
        position = 0
        for line in self.lines:
            offsets.append(position)
            position += len(line) + 1
        return offsets

    def _line_start(self, index: int) -> int:
        return self._offsets[index]

    def _line_end(self, index: int) -> int:
        """Offset just past the line, including its newline when there is one."""
        return min(self._offsets[index] + len(self.lines[index]) + 1, len(self.source))

    def _emit(self, block: Block, start: int, end: int) -> None:
        self.results.append((block, SourceSpan(start, end)))

    def _runs(self, text: str):
        return resolve_runs(text, font_size=self.font_size)

    def _nested(self, lines: List[str]) -> Tuple[Block, ...]:
        return parse_blocks("\n".join(lines), font_size=self.font_size, depth=self.depth + 1)

    # -- dispatch ---------------------------------------------------------

    def _step(self, index: int) -> int:
        line = self.lines[index]
        if self.mode is ScanMode.CODE_FENCE:
            self._fence_line(index, line)
            return index + 1
        if line.startswith(FENCE):
            self._open_fence(index, line)
            return index + 1
        if self.mode is ScanMode.NORMAL:
            return self._normal_line(index, line)
        stripped = line.strip()
        if self.mode is ScanMode.TOGGLE:
            self._toggle_line(index, line, stripped)
        elif self.mode is ScanMode.COLUMNS:
            self._columns_line(index, line, stripped)
        elif self.mode is ScanMode.TABLE:
            self._table_line(index, line, stripped)
        elif self.mode is ScanMode.ALIGNMENT:
            self._alignment_line(index, line, stripped)
        return index + 1

    # -- code fences ------------------------------------------------------

    def _open_fence(self, index: int, line: str) -> None:
        if self.mode is ScanMode.NORMAL:
            self._flush_paragraph()
        self.fence = _Fence(
            opening=line,
            language=line[len(FENCE) :].strip(),
            start=self._line_start(index),
            resume=self.mode,
        )
        self.mode = ScanMode.CODE_FENCE

    def _fence_line(self, index: int, line: str) -> None:
        fence = self.fence
        if not line.startswith(FENCE):
            fence.lines.append(line)
            return
        if fence.resume is ScanMode.NORMAL:
            self._emit(CodeBlock(code="\n".join(fence.lines), language=fence.language), fence.start, self._line_end(index))
        else:
            for raw in [fence.opening, *fence.lines, line]:
                self._feed_region(raw)
        self.mode = fence.resume
        self.fence = None

    # -- normal mode ------------------------------------------------------

    def _normal_line(self, index: int, line: str) -> int:
        stripped = line.strip()
        if self.depth < MAX_NESTING_DEPTH and self._open_region(index, line, stripped):
            return index + 1

        if is_table_row(line) and index + 1 < len(self.lines) and is_separator_row(self.lines[index + 1]):
            return self._pipe_table(index)

        block = self._simple_block(line, stripped)
        if block is not None:
            self._flush_paragraph()
            self._emit(block, self._line_start(index), self._line_end(index))
        elif not stripped:
            self._flush_paragraph()
        else:
            if not self.paragraph:
                self.paragraph_start = self._line_start(index)
            self.paragraph.append(line)
            self.paragraph_end = self._line_end(index)
        return index + 1

    def _open_region(self, index: int, line: str, stripped: str) -> bool:
        start = self._line_start(index)
        match = ALIGN_LINE.match(stripped)
        if match:
            self._flush_paragraph()
            paragraph = Paragraph(runs=self._runs(match.group(2)), alignment=match.group(1))
            self._emit(paragraph, start, self._line_end(index))
            return True
        match = ALIGN_OPEN.match(stripped)
        if match:
            self._flush_paragraph()
            region = _AlignmentRegion(alignment=match.group(1), start=start)
            if match.group(2):
                region.lines.append(match.group(2))
            self._enter(ScanMode.ALIGNMENT, region)
            if match.group(2).endswith(ALIGN_CLOSE):
                self._close_region(self._line_end(index))
            return True
        if stripped == TABLE_OPEN:
            self._flush_paragraph()
            self._enter(ScanMode.TABLE, _TableRegion(start=start))
            return True
        if stripped == COLUMNS_OPEN:
            self._flush_paragraph()
            self._enter(ScanMode.COLUMNS, _ColumnsRegion(start=start))
            return True
        match = TOGGLE_OPEN.match(line)
        if match:
            self._flush_paragraph()
            self._enter(ScanMode.TOGGLE, _ToggleRegion(level=len(match.group(1)), title=match.group(2), start=start))
            return True
        return False

    def _enter(self, mode: ScanMode, region: _Region) -> None:
        self.mode = mode
        self.region = region

    def _pipe_table(self, index: int) -> int:
        self._flush_paragraph()
        rows = [self.lines[index], self.lines[index + 1]]
        end = index + 2
        while end < len(self.lines) and is_table_row(self.lines[end]):
            rows.append(self.lines[end])
            end += 1
        table = parse_table(rows)
        if table is not None:
            self._emit(table, self._line_start(index), self._line_end(end - 1))
        return end

    def _simple_block(self, line: str, stripped: str) -> Optional[Block]:
        match = HEADING.match(line)
        if match:
            return Heading(level=len(match.group(1)), runs=self._runs(match.group(2)))
        image = parse_image(stripped)
        if image is not None:
            return image
        if line.startswith(">"):
            return Blockquote(runs=self._runs(line[1:].strip()))
        item = self._list_item(line)
        if item is not None:
            return item
        if any(rule.match(stripped) for rule in HORIZONTAL_RULES):
            return HorizontalRule()
        return None

    def _list_item(self, line: str) -> Optional[ListItem]:
        match = CHECKBOX_ITEM.match(line)
        if match:
            style = Checkbox(checked=match.group(2) != " ")
            return ListItem(indent=len(match.group(1)) // 2, style=style, runs=self._runs(match.group(3)))
        match = NUMBERED_ITEM.match(line)
        if match:
            style = Numbered(number=int(match.group(2)))
            return ListItem(indent=len(match.group(1)) // 2, style=style, runs=self._runs(match.group(3)))
        match = BULLET_ITEM.match(line)
        if match:
            return ListItem(indent=len(match.group(1)) // 2, style=Bullet(), runs=self._runs(match.group(2)))
        return None

    def _flush_paragraph(self) -> None:
        if not self.paragraph:
            return
        content, alignment = split_alignment(" ".join(self.paragraph))
        self._emit(Paragraph(runs=self._runs(content), alignment=alignment), self.paragraph_start, self.paragraph_end)
        self.paragraph = []

    # -- compound regions -------------------------------------------------

    def _feed_region(self, line: str) -> None:
        region = self.region
        if isinstance(region, _ToggleRegion):
            region.lines.append(line)
        elif isinstance(region, _ColumnsRegion):
            region.columns[-1].append(line)
        elif isinstance(region, _TableRegion):
            if is_table_row(line) or is_separator_row(line):
                region.rows.append(line)
        elif isinstance(region, _AlignmentRegion):
            region.lines.append(line)

    def _toggle_line(self, index: int, line: str, stripped: str) -> None:
        if stripped == TOGGLE_CLOSE:
            self._close_region(self._line_end(index))
        else:
            self._feed_region(line)

    def _columns_line(self, index: int, line: str, stripped: str) -> None:
        if stripped == COLUMNS_CLOSE:
            self._close_region(self._line_end(index))
        elif stripped == COLUMNS_BREAK:
            self.region.columns.append([])
        else:
            self._feed_region(line)

    def _table_line(self, index: int, line: str, stripped: str) -> None:
        region = self.region
        if stripped == TABLE_CLOSE:
            self._close_region(self._line_end(index))
        elif stripped == TABLE_HEADER_ROW:
            region.header_rows.add(len(region.rows))
        elif stripped.startswith("{header:"):
            match = TABLE_HEADER_COLUMN.search(line)
            if match:
                region.header_columns.add(int(match.group(1)))
        else:
            self._feed_region(line)

    def _alignment_line(self, index: int, line: str, stripped: str) -> None:
        if stripped == ALIGN_CLOSE:
            self._close_region(self._line_end(index))
        elif stripped.endswith(ALIGN_CLOSE):
            self._feed_region(line)
            self._close_region(self._line_end(index))
        else:
            self._feed_region(line)

    def _close_region(self, end: int) -> None:
        region = self.region
        block = self._finalize_region(region)
        if block is not None:
            self._emit(block, region.start, end)
        self.region = None
        self.mode = ScanMode.NORMAL

    def _finalize_region(self, region: _Region) -> Optional[Block]:
        if isinstance(region, _ToggleRegion):
            return ToggleHeading(level=region.level, title=self._runs(region.title), content=self._nested(region.lines))
        if isinstance(region, _ColumnsRegion):
            columns = []
            for lines in region.columns:
                blocks = self._nested(lines)
                columns.append(blocks or (Paragraph(runs=()),))
            return Columns(content=tuple(columns))
        if isinstance(region, _TableRegion):
            if not region.rows:
                return None
            return parse_table(region.rows, region.header_rows, region.header_columns)
        if isinstance(region, _AlignmentRegion):
            if not region.lines:
                return None
            content = "\n".join(region.lines).strip()
            if content.endswith(ALIGN_CLOSE):
                content = content[: -len(ALIGN_CLOSE)].strip()
            return Paragraph(runs=self._runs(content), alignment=region.alignment)
        return None

    def _finish(self) -> None:
        end = len(self.source)
        if self.mode is ScanMode.CODE_FENCE:
            fence = self.fence
            if fence.resume is ScanMode.NORMAL:
                self._emit(CodeBlock(code="\n".join(fence.lines), language=fence.language), fence.start, end)
            else:
                for raw in [fence.opening, *fence.lines]:
                    self._feed_region(raw)
            self.mode = fence.resume
            self.fence = None
        self._flush_paragraph()
        if self.region is not None:
            self._close_region(end)


def parse_image(line: str) -> Optional[Image]:
    """Parse ``![alt](url)`` with an optional `` =WIDTHxHEIGHT`` size suffix."""
    match = IMAGE.match(line.strip())
    if match is None:
        return None
    alt, url, width, height = match.groups()
    return Image(
        url=url,
        alt=alt,
        width=int(width) if width else None,
        height=int(height) if height else None,
    )


def split_alignment(text: str) -> Tuple[str, ParagraphAlignment]:
    """Strip ``{align:X}...{/align}`` tags from paragraph text and report X."""
    trimmed = text.strip()
    match = ALIGN_EXACT.match(trimmed)
    if match:
        return match.group(2), match.group(1)
    match = ALIGN_WRAPPED.match(text)
    if match:
        before, alignment, content, after = match.groups()
        return before + content + after, alignment
    return text, "left"
