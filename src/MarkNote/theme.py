from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .model import DEFAULT_FONT_SIZE

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

DEFAULT_PALETTE: Dict[str, str] = {
    "red": "FF3B30",
    "blue": "007AFF",
    "green": "34C759",
    "orange": "FF9500",
    "yellow": "FFCC00",
    "purple": "AF52DE",
    "pink": "FF2D55",
    "cyan": "32ADE6",
    "teal": "30B0C7",
    "indigo": "5856D6",
    "mint": "00C7BE",
    "brown": "A2845E",
    "gray": "8E8E93",
    "grey": "8E8E93",
    "black": "000000",
    "white": "FFFFFF",
    # roles
    "text": "1A1A1A",
    "heading": "000000",
    "link": "007AFF",
    "code": "D94214",
    "code_background": "F2F2F2",
    "blockquote": "666666",
}


class ThemeError(ValueError):
    """Raised when a theme file does not describe a valid theme."""


@dataclass(frozen=True)
class Theme:
    font_size: float = DEFAULT_FONT_SIZE
    font_name: str = "Helvetica"
    code_font_name: str = "Courier New"
    palette: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PALETTE))

    def color(self, name: Optional[str]) -> Optional[str]:
        """Hex value (``RRGGBB``) for a palette name, None when unknown."""
        if name is None:
            return None
        return self.palette.get(name)


def load_theme(text: str) -> Theme:
    """Parse a YAML theme; keys left out keep their defaults."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ThemeError("Theme root must be a mapping.")

    theme = Theme()
    if "font_size" in data:
        theme = replace(theme, font_size=_font_size(data["font_size"]))
    for key in ("font_name", "code_font_name"):
        if data.get(key):
            theme = replace(theme, **{key: str(data[key])})
    if "palette" in data:
        theme = replace(theme, palette=_palette(data["palette"]))

    unknown = set(data) - {"font_size", "font_name", "code_font_name", "palette"}
    if unknown:
        logger.warning("Ignoring unknown theme keys: %s", ", ".join(sorted(unknown)))
    return theme


def load_theme_file(path: Path) -> Theme:
    logger.debug("Loading theme from %s", path)
    return load_theme(Path(path).read_text(encoding="utf-8"))


def _font_size(value: Any) -> float:
    if isinstance(value, bool):
        raise ThemeError(f"font_size must be a number, got {value!r}")
    try:
        size = float(value)
    except (TypeError, ValueError) as exc:
        raise ThemeError(f"font_size must be a number, got {value!r}") from exc
    if size <= 0:
        raise ThemeError(f"font_size must be positive, got {size}")
    return size


def _palette(value: Any) -> Dict[str, str]:
    if value is None:
        return dict(DEFAULT_PALETTE)
    if not isinstance(value, dict):
        raise ThemeError("palette must be a mapping of color names to hex values.")
    palette = dict(DEFAULT_PALETTE)
    for name, hex_value in value.items():
        match = HEX_COLOR.match(str(hex_value))
        if match is None:
            raise ThemeError(f"Invalid hex color for {name!r}: {hex_value!r}")
        palette[str(name).lower()] = match.group(1).upper()
    return palette
