from __future__ import annotations

import re

_NAMED_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
    ("&#x2F;", "/"),
    ("&#x27;", "'"),
)

# Only these survive a single pass when the input was encoded twice.
_DOUBLE_ENCODED = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)

_NUMERIC_ENTITY = re.compile(r"&#([0-9]+);")

_MAX_CODE_POINT = 0x10FFFF


def decode(text: str) -> str:
    """Replace common HTML entities with literal characters.

    Copied HTML content may be encoded twice (``&amp;gt;``), so after the
    first pass a second, narrower pass resolves leftover ``&amp;``, ``&lt;``
    and ``&gt;``. Deeper nesting is left alone.
    """
    if not text:
        return text

    decoded = text
    for entity, literal in _NAMED_ENTITIES:
        decoded = decoded.replace(entity, literal)
    decoded = _NUMERIC_ENTITY.sub(_numeric_replacement, decoded)

    if any(entity in decoded for entity, _ in _DOUBLE_ENCODED):
        for entity, literal in _DOUBLE_ENCODED:
            decoded = decoded.replace(entity, literal)
    return decoded


def _is_xml_char(code_point: int) -> bool:
    return (
        code_point in (0x9, 0xA, 0xD)
        or 0x20 <= code_point <= 0xD7FF
        or 0xE000 <= code_point <= 0xFFFD
        or 0x10000 <= code_point <= _MAX_CODE_POINT
    )


def _numeric_replacement(match: re.Match[str]) -> str:
    code_point = int(match.group(1))
    # Characters XML cannot carry stay encoded.
    if not _is_xml_char(code_point):
        return match.group(0)
    return chr(code_point)
