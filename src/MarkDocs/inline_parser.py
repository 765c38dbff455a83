from __future__ import annotations

import re
from typing import List

from .model import InlineRun, LinkSegment, Style, TextSegment

LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# Longest markers first; "bold_italic" is a single flag that reads as both styles.
_MARKERS = (
    ("***", "bold_italic"),
    ("___", "bold_italic"),
    ("**", "bold"),
    ("__", "bold"),
    ("~~", "strike"),
)

_FLAG_STYLES = {
    "bold": (Style.BOLD,),
    "italic": (Style.ITALIC,),
    "bold_italic": (Style.BOLD, Style.ITALIC),
    "strike": (Style.STRIKE,),
    "code": (Style.CODE,),
}


def parse_inline(text: str) -> InlineRun:
    """Split a text run into links and styled text segments."""
    segments: InlineRun = []
    last_index = 0
    for match in LINK_PATTERN.finditer(text):
        if match.start() > last_index:
            segments.extend(_parse_styles(text[last_index : match.start()]))
        segments.append(LinkSegment(text=match.group(1), url=match.group(2)))
        last_index = match.end()
    if last_index < len(text):
        segments.extend(_parse_styles(text[last_index:]))
    return segments


def _parse_styles(text: str) -> List[TextSegment]:
    segments: List[TextSegment] = []
    active: set[str] = set()
    current: list[str] = []

    def flush() -> None:
        if current:
            segments.append(TextSegment(text="".join(current), styles=_snapshot(active)))
            current.clear()

    def toggle(flag: str) -> None:
        flush()
        if flag in active:
            active.remove(flag)
        else:
            active.add(flag)

    i = 0
    while i < len(text):
        marker = _marker_at(text, i)
        if marker is not None:
            token, flag = marker
            toggle(flag)
            i += len(token)
        elif text[i] in "*_" and (i == 0 or text[i - 1] != "\\"):
            toggle("italic")
            i += 1
        elif text[i] == "`":
            toggle("code")
            i += 1
        else:
            current.append(text[i])
            i += 1
    flush()
    return segments


def _marker_at(text: str, index: int) -> tuple[str, str] | None:
    for token, flag in _MARKERS:
        if text.startswith(token, index):
            return token, flag
    return None


def _snapshot(active: set[str]) -> frozenset[Style]:
    return frozenset(style for flag in active for style in _FLAG_STYLES[flag])


def plain_text(run: InlineRun) -> str:
    return "".join(segment.text for segment in run)
