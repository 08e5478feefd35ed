from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import markdown_parser, renderer_docx, serializer
from .theme import Theme, load_theme_file
from .utils import configure_logging, read_markdown, resolve_output_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marknote",
        description="Convert extended-markdown notes into DOCX or normalized markdown.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file")
    parser.add_argument("-o", "--output", type=str, help="Output path")
    parser.add_argument("--to", choices=("docx", "markdown"), default="docx", help="Output format")
    parser.add_argument("--theme", type=str, help="YAML theme file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    output_path = resolve_output_path(input_path, args.output, args.to)
    theme = load_theme_file(Path(args.theme).expanduser()) if args.theme else Theme()

    logging.info("Reading %s", input_path)
    markdown_text = read_markdown(input_path)
    logging.debug("Markdown length: %d chars", len(markdown_text))

    logging.info("Parsing markdown...")
    document = markdown_parser.parse_markdown(markdown_text, font_size=theme.font_size)
    logging.debug("Parsed %d top-level blocks", len(document.blocks))

    if args.to == "markdown":
        logging.info("Writing markdown to %s", output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(serializer.to_markdown(document, font_size=theme.font_size) + "\n", encoding="utf-8")
    else:
        logging.info("Rendering DOCX to %s", output_path)
        state = renderer_docx.render_document(
            document, output_path=output_path, asset_root=input_path.parent, theme=theme
        )
        if state.missing_images:
            logging.warning("%d image(s) could not be embedded", len(state.missing_images))

    logging.info("Done. Saved to %s", output_path)


if __name__ == "__main__":
    main()
