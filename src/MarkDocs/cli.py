from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from docx import Document as DocxDocument

from . import converter
from .inspector import inspect_element
from .settings import PROVIDERS, RETENTION_MODES, SettingsStore
from .utils import STDIN_MARKER, configure_logging, resolve_output_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdocs",
        description="Convert Markdown (with mermaid diagrams) into formatted DOCX content.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--settings", type=str, help="Path to the settings YAML file")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert a Markdown file")
    convert.add_argument("input", type=str, help="Path to Markdown file ('-' for stdin)")
    convert.add_argument("-o", "--output", type=str, help="Output DOCX path")
    convert.add_argument("--into", type=str, help="Existing DOCX to insert the content into")
    convert.add_argument("--at", type=int, help="Body position to insert at (default: end of document)")

    settings = sub.add_parser("settings", help="Show or update diagram settings")
    settings.add_argument("--provider", choices=PROVIDERS, help="Preferred mermaid provider")
    settings.add_argument("--api-key", dest="api_key", type=str, help="API key (mermaidchart) or URL (custom)")
    settings.add_argument("--theme", type=str, help="Mermaid theme")
    settings.add_argument("--retention", choices=RETENTION_MODES, help="How diagram source is kept")

    inspect = sub.add_parser("inspect", help="Describe an element of a DOCX body")
    inspect.add_argument("document", type=str, help="DOCX file")
    inspect.add_argument("index", type=int, help="Body element position")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    store = SettingsStore(args.settings)

    if args.command == "convert":
        return _convert(args, store)
    if args.command == "settings":
        return _settings(args, store)
    return _inspect(args)


def _convert(args: argparse.Namespace, store: SettingsStore) -> int:
    input_path = Path(args.input).expanduser()
    if args.input != STDIN_MARKER and not input_path.exists():
        logging.error("Input file not found: %s", input_path)
        return 1
    output_path = resolve_output_path(input_path, args.output, args.into)
    config = store.get().to_provider_config()
    logging.debug("Using provider %s, theme %s, retention %s", config.provider_name, config.theme, config.code_retention.value)

    logging.info("Converting %s", args.input)
    result = converter.convert_file(input_path, output_path, config, into=args.into, start_index=args.at)
    if not result.success:
        logging.error(result.message)
        return 1
    logging.info("%s Saved to %s", result.message, output_path)
    return 0


def _settings(args: argparse.Namespace, store: SettingsStore) -> int:
    current = store.get()
    updates = {
        "provider": args.provider,
        "api_key": args.api_key,
        "theme": args.theme,
        "code_retention": args.retention,
    }
    changed = {key: value for key, value in updates.items() if value is not None}
    if changed:
        for key, value in changed.items():
            setattr(current, key, value)
        store.set(current)
        logging.info("Settings saved to %s", store.path)
    shown = dict(vars(current))
    if shown["api_key"]:
        shown["api_key"] = "***"
    print(json.dumps(shown, indent=2))
    return 0


def _inspect(args: argparse.Namespace) -> int:
    document = DocxDocument(args.document)
    info = inspect_element(document, args.index)
    print(json.dumps(info, indent=2, ensure_ascii=False))
    return 1 if "error" in info else 0


if __name__ == "__main__":
    sys.exit(main())
