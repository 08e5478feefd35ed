"""Inline run resolution.

Turns the text payload of a block into a tuple of :class:`Run` values. Span
detectors run in a fixed precedence order; each one scans the *unmodified*
segment for its own delimiters, resolves the delimited text recursively and
stamps its attribute onto the nested runs before splicing them back at the
matched source position.

A detector may claim a range that fully contains ranges claimed earlier (its
recursive resolution already covers them), but never a range that cuts
through an earlier claim or sits inside one.
"""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .model import DEFAULT_FONT_SIZE, Run, Runs

MAX_INLINE_DEPTH = 10
CODE_SCALE = 0.9

COLOR_NAMES = frozenset(
    {
        "red",
        "blue",
        "green",
        "orange",
        "yellow",
        "purple",
        "pink",
        "cyan",
        "teal",
        "indigo",
        "mint",
        "brown",
        "gray",
        "grey",
        "black",
        "white",
    }
)

SIZE_SPAN = re.compile(r"\{size:(\d+)\}(.+?)\{/size\}")
SIZE_TAG = re.compile(r"\{size:(\d+)\}")
COLOR_SPAN = re.compile(r"\{color:([a-zA-Z]+)\}(.+?)\{/color\}")
BOLD_ITALIC_SPANS = (re.compile(r"\*\*\*(.+?)\*\*\*"), re.compile(r"___(.+?)___"))
BOLD_SPANS = (re.compile(r"\*\*(.+?)\*\*"), re.compile(r"__(.+?)__"))
ITALIC_SPANS = (re.compile(r"\*([^*]+?)\*"), re.compile(r"_([^_]+?)_"))
CODE_SPAN = re.compile(r"`([^`]+)`")
LINK_SPAN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
AUTOLINK = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")
STRIKE_SPAN = re.compile(r"~~(.+?)~~")
HIGHLIGHT_SPAN = re.compile(r"==(.+?)==")
UNDERLINE_SPAN = re.compile(r"<u>(.+?)</u>")


@dataclass
class _Piece:
    """A slice ``[start, end)`` of the segment; ``runs`` stays None while unclaimed."""

    start: int
    end: int
    runs: Optional[List[Run]] = None


@dataclass
class _Context:
    text: str
    depth: int
    font_size: float
    memo: Dict[Tuple[str, int], Runs] = field(default_factory=dict)

    def resolve(self, inner: str) -> List[Run]:
        return list(_resolve(inner, self.depth + 1, self.font_size, self.memo))


# (start, end, build) where build produces the runs replacing [start, end)
Claim = Tuple[int, int, Callable[[], List[Run]]]


def resolve_runs(text: str, depth: int = 0, font_size: float = DEFAULT_FONT_SIZE) -> Runs:
    """Resolve ``text`` into styled runs covering it left to right without overlaps."""
    return _resolve(text, depth, font_size, {})


def _resolve(text: str, depth: int, font_size: float, memo: Dict[Tuple[str, int], Runs]) -> Runs:
    if not text:
        return ()
    if depth >= MAX_INLINE_DEPTH:
        return (Run(text, font_size=font_size),)
    key = (text, depth)
    if key in memo:
        return memo[key]

    ctx = _Context(text=text, depth=depth, font_size=font_size, memo=memo)
    # pieces tile the segment left to right; starts mirrors their offsets for bisect
    pieces = [_Piece(0, len(text))]
    starts = [0]
    for detector in DETECTORS:
        claims = list(detector(ctx))
        for start, end, build in reversed(claims):
            lo, hi = _touching(starts, start, end)
            if _can_claim(pieces[lo:hi], start, end):
                _splice(pieces, starts, lo, hi, _Piece(start, end, build()))

    output: List[Run] = []
    for piece in pieces:
        if piece.runs is None:
            output.append(Run(text[piece.start : piece.end], font_size=font_size))
        else:
            output.extend(piece.runs)
    result = tuple(_coalesce(output))
    memo[key] = result
    return result


def _touching(starts: Sequence[int], start: int, end: int) -> Tuple[int, int]:
    """Index range ``[lo, hi)`` of the pieces overlapping ``[start, end)``."""
    return bisect_right(starts, start) - 1, bisect_left(starts, end)


def _can_claim(touching: Sequence[_Piece], start: int, end: int) -> bool:
    for piece in touching:
        if piece.runs is not None and (piece.start < start or piece.end > end):
            return False
    return True


def _splice(pieces: List[_Piece], starts: List[int], lo: int, hi: int, claimed: _Piece) -> None:
    first, last = pieces[lo], pieces[hi - 1]
    replacement = []
    if first.start < claimed.start:
        replacement.append(_Piece(first.start, claimed.start))
    replacement.append(claimed)
    if last.end > claimed.end:
        replacement.append(_Piece(claimed.end, last.end))
    pieces[lo:hi] = replacement
    starts[lo:hi] = [piece.start for piece in replacement]


def _coalesce(runs: Sequence[Run]) -> List[Run]:
    merged: List[Run] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].same_style(run):
            merged[-1] = replace(merged[-1], text=merged[-1].text + run.text)
        else:
            merged.append(run)
    return merged


def _scan(pattern: re.Pattern, text: str, accept: Optional[Callable[[re.Match], bool]] = None) -> Iterator[re.Match]:
    """Yield matches left to right; a rejected candidate is retried one character later."""
    pos = 0
    while pos < len(text):
        match = pattern.search(text, pos)
        if match is None:
            return
        if accept is None or accept(match):
            yield match
            pos = match.end()
        else:
            pos = match.start() + 1


def _stamp(runs: Sequence[Run], **attrs) -> List[Run]:
    return [replace(run, **attrs) for run in runs]


def _extracted_size(inner: str) -> Optional[float]:
    match = SIZE_TAG.search(inner)
    if match:
        return float(match.group(1))
    return None


def _emphasis(ctx: _Context, inner: str, **attrs) -> Callable[[], List[Run]]:
    # A {size:N} tag anywhere inside wins over the nested run sizes.
    size = _extracted_size(inner)
    if size is not None:
        attrs["font_size"] = size
    return lambda: _stamp(ctx.resolve(inner), **attrs)


def _overlay(ctx: _Context, inner: str, **attrs) -> Callable[[], List[Run]]:
    return lambda: _stamp(ctx.resolve(inner), **attrs)


def _detect_size(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(SIZE_SPAN, ctx.text):
        size = float(match.group(1))
        yield match.start(), match.end(), _overlay(ctx, match.group(2), font_size=size)


def _detect_color(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(COLOR_SPAN, ctx.text):
        name = match.group(1).lower()
        color = name if name in COLOR_NAMES else None
        yield match.start(), match.end(), _overlay(ctx, match.group(2), color=color)


def _detect_bold_italic(ctx: _Context) -> Iterator[Claim]:
    for pattern in BOLD_ITALIC_SPANS:
        for match in _scan(pattern, ctx.text):
            yield match.start(), match.end(), _emphasis(ctx, match.group(1), bold=True, italic=True)


def _detect_bold(ctx: _Context) -> Iterator[Claim]:
    for pattern, triple in zip(BOLD_SPANS, ("***", "___")):
        for match in _scan(pattern, ctx.text, lambda m, t=triple: not m.group(0).startswith(t)):
            yield match.start(), match.end(), _emphasis(ctx, match.group(1), bold=True)


def _italic_acceptor(text: str, marker: str) -> Callable[[re.Match], bool]:
    double = marker * 2

    def accept(match: re.Match) -> bool:
        before = text[match.start() - 1] if match.start() > 0 else ""
        after = text[match.end()] if match.end() < len(text) else ""
        if before == marker or after == marker:
            return False
        full = match.group(0)
        return not (full.startswith(double) or full.endswith(double))

    return accept


def _detect_italic(ctx: _Context) -> Iterator[Claim]:
    for pattern, marker in zip(ITALIC_SPANS, ("*", "_")):
        for match in _scan(pattern, ctx.text, _italic_acceptor(ctx.text, marker)):
            yield match.start(), match.end(), _emphasis(ctx, match.group(1), italic=True)


def _detect_code(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(CODE_SPAN, ctx.text):
        run = Run(
            match.group(1),
            font_size=ctx.font_size * CODE_SCALE,
            code=True,
            color="code",
            background="code_background",
        )
        yield match.start(), match.end(), lambda run=run: [run]


def _detect_links(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(LINK_SPAN, ctx.text):
        target = match.group(2).strip()
        yield match.start(), match.end(), _overlay(ctx, match.group(1), link=target, color="link", underline=True)
    for match in _scan(AUTOLINK, ctx.text):
        url = match.group(0)
        run = Run(url, font_size=ctx.font_size, link=url, color="link", underline=True)
        yield match.start(), match.end(), lambda run=run: [run]


def _detect_strikethrough(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(STRIKE_SPAN, ctx.text):
        yield match.start(), match.end(), _overlay(ctx, match.group(1), strikethrough=True)


def _detect_highlight(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(HIGHLIGHT_SPAN, ctx.text):
        yield match.start(), match.end(), _overlay(ctx, match.group(1), color="black", background="yellow")


def _detect_underline(ctx: _Context) -> Iterator[Claim]:
    for match in _scan(UNDERLINE_SPAN, ctx.text):
        yield match.start(), match.end(), _overlay(ctx, match.group(1), underline=True)


DETECTORS: Tuple[Callable[[_Context], Iterator[Claim]], ...] = (
    _detect_size,
    _detect_color,
    _detect_bold_italic,
    _detect_bold,
    _detect_italic,
    _detect_code,
    _detect_links,
    _detect_strikethrough,
    _detect_highlight,
    _detect_underline,
)
