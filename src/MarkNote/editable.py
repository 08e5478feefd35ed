"""Click-to-edit support: blocks paired with the source text they came from.

Spans are derived fresh on every parse. After a commit the whole source is
parsed again, so the spans handed out before the commit are stale.
"""

from __future__ import annotations

from typing import List, Tuple

from .markdown_parser import scan_blocks
from .model import DEFAULT_FONT_SIZE, Block, Document, SourceSpan


def parse_with_spans(text: str, font_size: float = DEFAULT_FONT_SIZE) -> List[Tuple[Block, SourceSpan]]:
    return scan_blocks(text, font_size=font_size)


def replace_span(source: str, span: SourceSpan, new_text: str) -> str:
    """Return ``source`` with exactly ``[span.start, span.end)`` replaced by ``new_text``."""
    if span.end > len(source):
        raise ValueError(f"Span [{span.start}, {span.end}) lies outside a source of length {len(source)}")
    return source[: span.start] + new_text + source[span.end :]


class EditableDocument:
    """A markdown source that can be edited one block at a time."""

    def __init__(self, source: str = "", font_size: float = DEFAULT_FONT_SIZE) -> None:
        self.font_size = font_size
        self._source = source
        self._entries = parse_with_spans(source, font_size=font_size)

    @property
    def source(self) -> str:
        return self._source

    @property
    def blocks(self) -> Tuple[Block, ...]:
        return tuple(block for block, _ in self._entries)

    @property
    def spans(self) -> Tuple[SourceSpan, ...]:
        return tuple(span for _, span in self._entries)

    @property
    def document(self) -> Document:
        return Document(blocks=self.blocks)

    def __len__(self) -> int:
        return len(self._entries)

    def span_for(self, block_index: int) -> SourceSpan:
        if not 0 <= block_index < len(self._entries):
            raise IndexError(f"Block index {block_index} out of range (0..{len(self._entries) - 1})")
        return self._entries[block_index][1]

    def text_for(self, block_index: int) -> str:
        """Raw source of one block, as shown when editing starts."""
        return self.span_for(block_index).slice(self._source)

    def commit(self, block_index: int, new_text: str) -> str:
        """Replace the source of ``block_index`` with ``new_text`` and re-parse."""
        self._reset(replace_span(self._source, self.span_for(block_index), new_text))
        return self._source

    def append_paragraph(self, text: str) -> str:
        """Append ``text`` as a new paragraph separated by a blank line."""
        source = self._source
        if source and not source.endswith("\n"):
            source += "\n"
        if source:
            source += "\n"
        self._reset(source + text)
        return self._source

    def _reset(self, source: str) -> None:
        self._source = source
        self._entries = parse_with_spans(source, font_size=self.font_size)
