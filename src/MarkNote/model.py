from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Literal, Optional, Tuple, Union

DEFAULT_FONT_SIZE = 16.0

ParagraphAlignment = Literal["left", "center", "right"]
TableAlignment = Literal["left", "center", "right", "none"]


@dataclass(frozen=True)
class Run:
    """A maximal span of text sharing one resolved attribute set.

    Colors are palette names (``red``, ``link``, ``code_background``...) and are
    resolved to concrete values by the renderer's theme.
    """

    text: str
    font_size: float = DEFAULT_FONT_SIZE
    bold: bool = False
    italic: bool = False
    code: bool = False
    color: Optional[str] = None
    background: Optional[str] = None
    underline: bool = False
    strikethrough: bool = False
    link: Optional[str] = None

    def same_style(self, other: Run) -> bool:
        return replace(self, text="") == replace(other, text="")


Runs = Tuple[Run, ...]


@dataclass(frozen=True)
class Bullet:
    pass


@dataclass(frozen=True)
class Numbered:
    number: int


@dataclass(frozen=True)
class Checkbox:
    checked: bool


ListStyle = Union[Bullet, Numbered, Checkbox]


@dataclass(frozen=True)
class Paragraph:
    runs: Runs
    alignment: ParagraphAlignment = "left"


@dataclass(frozen=True)
class Heading:
    level: int
    runs: Runs


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str = ""


@dataclass(frozen=True)
class Blockquote:
    runs: Runs


@dataclass(frozen=True)
class ListItem:
    indent: int
    style: ListStyle
    runs: Runs


@dataclass(frozen=True)
class HorizontalRule:
    """Horizontal rule / thematic break."""


@dataclass(frozen=True)
class Image:
    url: str
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class ToggleHeading:
    level: int
    title: Runs
    content: Tuple["Block", ...]


@dataclass(frozen=True)
class Columns:
    content: Tuple[Tuple["Block", ...], ...]


@dataclass(frozen=True)
class Table:
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    alignments: Tuple[TableAlignment, ...]
    header_rows: FrozenSet[int] = frozenset({0})
    header_columns: FrozenSet[int] = frozenset({0})


Block = Union[
    Paragraph,
    Heading,
    CodeBlock,
    Blockquote,
    ListItem,
    HorizontalRule,
    Image,
    ToggleHeading,
    Columns,
    Table,
]

BLOCK_TYPES = (
    Paragraph,
    Heading,
    CodeBlock,
    Blockquote,
    ListItem,
    HorizontalRule,
    Image,
    ToggleHeading,
    Columns,
    Table,
)


@dataclass(frozen=True)
class Document:
    blocks: Tuple[Block, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)


@dataclass(frozen=True)
class SourceSpan:
    """Half-open ``[start, end)`` character range of the source a block came from."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid source span [{self.start}, {self.end})")

    def slice(self, source: str) -> str:
        return source[self.start : self.end]


def plain_text(runs: Runs) -> str:
    return "".join(run.text for run in runs)
