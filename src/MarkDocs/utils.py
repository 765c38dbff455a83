from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

STDIN_MARKER = "-"


def configure_logging(verbose: bool = False) -> None:
    """Console logging; quiet down urllib3 unless debugging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def resolve_output_path(input_path: Path, output: Optional[str], into: Optional[str] = None) -> Path:
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}.docx"
        return out_path
    if into:
        # Converting into an existing document updates it in place.
        return Path(into)
    if str(input_path) == STDIN_MARKER:
        return Path("markdown.docx")
    return input_path.with_suffix(".docx")


def read_markdown(path: Path) -> str:
    if str(path) == STDIN_MARKER:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8-sig")
