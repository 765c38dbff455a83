from __future__ import annotations

import re
from typing import List

from .entities import decode
from .inline_parser import parse_inline
from .model import (
    Alignment,
    Block,
    Blockquote,
    CodeBlock,
    Heading,
    HorizontalRule,
    ListBlock,
    ListItem,
    MermaidBlock,
    Paragraph,
    Table,
)

FENCE_RE = re.compile(r"^```(\w*)")
TABLE_ROW_RE = re.compile(r"^\s*\|.*\|\s*$")
ALIGNMENT_ROW_RE = re.compile(r"^[\s:\-]+$")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
RULE_RE = re.compile(r"^(-{3,}|\*{3,}|_{3,})$")
BLOCKQUOTE_RE = re.compile(r"^\s*>\s?(.*)$")
LIST_ITEM_RE = re.compile(r"^(\s*)([-*+]|\d+\.)\s+(.*)$")
ORDERED_MARKER_RE = re.compile(r"^\d+\.")


def parse_markdown(text: str) -> List[Block]:
    """Decode entities and scan Markdown text into an ordered list of blocks."""
    return parse_blocks(decode(text or ""))


def parse_blocks(text: str) -> List[Block]:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks: List[Block] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        fence = FENCE_RE.match(line)
        heading = HEADING_RE.match(line)
        if fence:
            block, i = _parse_fence(lines, i, fence.group(1))
            blocks.append(block)
        elif TABLE_ROW_RE.match(line):
            table, i = _parse_table(lines, i)
            if table is not None:
                blocks.append(table)
        elif heading:
            blocks.append(Heading(level=len(heading.group(1)), text=parse_inline(heading.group(2))))
            i += 1
        elif RULE_RE.match(line):
            blocks.append(HorizontalRule())
            i += 1
        elif BLOCKQUOTE_RE.match(line):
            quote, i = _parse_blockquote(lines, i)
            blocks.append(quote)
        elif LIST_ITEM_RE.match(line):
            list_block, i = _parse_list(lines, i)
            blocks.append(list_block)
        else:
            if line.strip():
                blocks.append(Paragraph(text=parse_inline(line)))
            i += 1
    return blocks


def _parse_fence(lines: List[str], index: int, language: str) -> tuple[Block, int]:
    code_lines: List[str] = []
    i = index + 1
    while i < len(lines) and not FENCE_RE.match(lines[i]):
        code_lines.append(lines[i])
        i += 1
    # Skip the closing fence; an unterminated fence simply runs to the end.
    i += 1
    if language.lower() == "mermaid":
        return MermaidBlock(source="\n".join(code_lines)), i
    return CodeBlock(language=language, lines=code_lines), i


def _parse_table(lines: List[str], index: int) -> tuple[Table | None, int]:
    rows: List[List] = []
    alignments: List[Alignment] = []
    i = index
    while i < len(lines) and TABLE_ROW_RE.match(lines[i]):
        row = lines[i].strip()
        if ALIGNMENT_ROW_RE.match(row.replace("|", "").strip()):
            alignments = parse_alignments(row)
        else:
            rows.append([parse_inline(cell) for cell in split_row(row)])
        i += 1
    if not rows:
        return None, i
    return Table(rows=rows, alignments=alignments), i


def split_row(row: str) -> List[str]:
    cleaned = re.sub(r"\|\s*$", "", re.sub(r"^\s*\|", "", row))
    return [cell.strip() for cell in cleaned.split("|")]


def parse_alignments(row: str) -> List[Alignment]:
    alignments: List[Alignment] = []
    for cell in row.split("|"):
        cell = cell.strip()
        if not cell:
            continue
        if cell.startswith(":") and cell.endswith(":"):
            alignments.append(Alignment.CENTER)
        elif cell.endswith(":"):
            alignments.append(Alignment.RIGHT)
        else:
            alignments.append(Alignment.LEFT)
    return alignments


def _parse_blockquote(lines: List[str], index: int) -> tuple[Blockquote, int]:
    quote_lines: List[str] = []
    i = index
    while i < len(lines):
        match = BLOCKQUOTE_RE.match(lines[i])
        if not match:
            break
        quote_lines.append(match.group(1))
        i += 1
    return Blockquote(text=parse_inline("\n".join(quote_lines))), i


def _parse_list(lines: List[str], index: int) -> tuple[ListBlock, int]:
    first = LIST_ITEM_RE.match(lines[index])
    ordered = bool(ORDERED_MARKER_RE.match(first.group(2)))
    base_indent = len(first.group(1))
    items: List[tuple[int, str]] = []
    i = index
    while i < len(lines):
        match = LIST_ITEM_RE.match(lines[i])
        if not match:
            break
        level = max(0, (len(match.group(1)) - base_indent) // 2)
        text = match.group(3)
        i += 1
        while i < len(lines) and not _ends_list_item(lines[i]):
            text += " " + lines[i].strip()
            i += 1
        items.append((level, text))
    list_items = [ListItem(level=level, text=parse_inline(text)) for level, text in items]
    return ListBlock(items=list_items, ordered=ordered), i


def _ends_list_item(line: str) -> bool:
    return (
        not line.strip()
        or bool(FENCE_RE.match(line))
        or bool(TABLE_ROW_RE.match(line))
        or bool(BLOCKQUOTE_RE.match(line))
        or bool(HEADING_RE.match(line))
        or bool(RULE_RE.match(line))
        or bool(LIST_ITEM_RE.match(line))
    )
