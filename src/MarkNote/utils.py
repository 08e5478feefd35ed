from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

OUTPUT_SUFFIXES = {"docx": ".docx", "markdown": ".out.md"}
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the CLI; module loggers inherit the root level."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def resolve_output_path(input_path: Path, output: Optional[str], fmt: str = "docx") -> Path:
    suffix = OUTPUT_SUFFIXES[fmt]
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}{suffix}"
        return out_path
    return input_path.with_name(f"{input_path.stem}{suffix}")


def read_markdown(path: Path) -> str:
    # utf-8-sig drops a leading BOM that would hide a first-line "# " heading
    return path.read_text(encoding="utf-8-sig")
