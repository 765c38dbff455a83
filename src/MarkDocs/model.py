from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Union


class Style(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    CODE = "code"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class RetentionMode(str, Enum):
    ALT = "alt"
    CAPTION = "caption"
    COMMENT = "comment"
    NONE = "none"


@dataclass(frozen=True)
class TextSegment:
    text: str
    styles: frozenset[Style] = frozenset()


@dataclass(frozen=True)
class LinkSegment:
    text: str
    url: str
    styles: frozenset[Style] = frozenset()


Segment = Union[TextSegment, LinkSegment]
InlineRun = List[Segment]


@dataclass
class Block:
    """Base class for block-level nodes."""


@dataclass
class Heading(Block):
    level: int
    text: InlineRun


@dataclass
class Paragraph(Block):
    text: InlineRun


@dataclass
class CodeBlock(Block):
    language: str
    lines: List[str]

    @property
    def code(self) -> str:
        return "\n".join(self.lines)


@dataclass
class MermaidBlock(Block):
    source: str


@dataclass
class Table(Block):
    rows: List[List[InlineRun]]
    alignments: List[Alignment] = field(default_factory=list)


@dataclass
class Blockquote(Block):
    text: InlineRun


@dataclass
class ListItem:
    level: int
    text: InlineRun


@dataclass
class ListBlock(Block):
    items: List[ListItem]
    ordered: bool


@dataclass
class HorizontalRule(Block):
    """Horizontal rule / thematic break."""


@dataclass
class Image(Block):
    data: bytes
    width: int
    height: int
    source_code: str
    alt_text: str | None = None
    title: str | None = None


@dataclass
class Caption(Block):
    """De-emphasized line printed under a rendered diagram."""

    text: str


@dataclass(frozen=True)
class ProviderAttempt:
    name: str
    succeeded: bool
    error_message: Optional[str] = None


@dataclass(frozen=True)
class ProviderConfig:
    provider_name: str = "mermaid.ink"
    api_key_or_url: str = ""
    theme: str = "neutral"
    code_retention: RetentionMode = RetentionMode.ALT


@dataclass
class RenderFailure:
    source: str
    attempts: Sequence[ProviderAttempt]

    @property
    def message(self) -> str:
        return "; ".join(f"{attempt.name}: {attempt.error_message}" for attempt in self.attempts)


@dataclass(frozen=True)
class ConversionResult:
    success: bool
    message: str
