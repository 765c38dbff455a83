"""
Markdown conversion entry points.

``convert_markdown`` drives the whole pipeline for one request: decode and
parse the text, render diagrams, apply the code retention policy and insert
every block into a document sink. It reports the outcome as a
``ConversionResult`` instead of raising.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from docx import Document as DocxDocument

from . import doc_format
from .markdown_parser import parse_markdown
from .mermaid_renderer import MermaidRenderer, failure_code_block
from .model import Block, Caption, ConversionResult, Image, MermaidBlock, ProviderConfig, RetentionMode
from .renderer_docx import DocxSink
from .sink import DocumentSink
from .utils import read_markdown

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Document formatted successfully!"
EMPTY_INPUT_MESSAGE = "No markdown text provided."

SOURCE_TITLE = "Mermaid Source Code"
CAPTION_PREFIX = "📊 Source: "
CAPTION_PREVIEW_LIMIT = 200
COMMENT_TEMPLATE = "🧜‍♀️ Mermaid Source Code:\n\n{code}\n\n---\nYou can copy this code to edit the diagram."


def convert_markdown(
    markdown: str | None,
    sink: DocumentSink,
    config: ProviderConfig,
    start_index: int | None = None,
    renderer: MermaidRenderer | None = None,
) -> ConversionResult:
    if not markdown or not markdown.strip():
        return ConversionResult(success=False, message=EMPTY_INPUT_MESSAGE)
    try:
        blocks = parse_markdown(markdown)
        logger.debug("Parsed %d blocks", len(blocks))
        index = sink.child_count() if start_index is None else start_index
        insert_blocks(sink, blocks, config, index, renderer or MermaidRenderer())
    except Exception as exc:
        logger.exception("Conversion failed")
        return ConversionResult(success=False, message=f"Error: {exc}")
    return ConversionResult(success=True, message=SUCCESS_MESSAGE)


def insert_blocks(
    sink: DocumentSink,
    blocks: list[Block],
    config: ProviderConfig,
    index: int,
    renderer: MermaidRenderer,
) -> int:
    for block in blocks:
        if isinstance(block, MermaidBlock):
            index = insert_diagram(sink, block.source, config, index, renderer)
        else:
            index = sink.insert_at(index, block)
    return index


def insert_diagram(
    sink: DocumentSink,
    source: str,
    config: ProviderConfig,
    index: int,
    renderer: MermaidRenderer,
) -> int:
    result = renderer.render(source, config)
    if not isinstance(result, Image):
        return sink.insert_at(index, failure_code_block(result))

    mode = config.code_retention
    if mode == RetentionMode.ALT:
        result = dataclasses.replace(result, alt_text=source, title=SOURCE_TITLE)
    image_index = index
    index = sink.insert_at(index, result)

    if mode == RetentionMode.CAPTION:
        index = sink.insert_at(index, Caption(text=CAPTION_PREFIX + caption_preview(source)))
    elif mode == RetentionMode.COMMENT:
        attach_source_comment(sink, image_index, source)
    return index


def caption_preview(source: str) -> str:
    preview = source[:CAPTION_PREVIEW_LIMIT] + "..." if len(source) > CAPTION_PREVIEW_LIMIT else source
    return preview.replace("\n", " ")


def attach_source_comment(sink: DocumentSink, index: int, source: str) -> None:
    try:
        attached = sink.annotate(index, COMMENT_TEMPLATE.format(code=source))
    except Exception:
        logger.warning("Comment addition failed, storing source as alt text", exc_info=True)
        attached = False
    if not attached:
        sink.set_alt_text(index, source, SOURCE_TITLE)


def convert_file(
    input_path: str | Path,
    output_path: str | Path,
    config: ProviderConfig,
    into: str | Path | None = None,
    start_index: int | None = None,
    renderer: MermaidRenderer | None = None,
) -> ConversionResult:
    """Convert a Markdown file into a new or existing DOCX file."""
    markdown = read_markdown(Path(input_path))
    if not markdown or not markdown.strip():
        return ConversionResult(success=False, message=EMPTY_INPUT_MESSAGE)
    if into:
        document = DocxDocument(str(into))
    else:
        document = DocxDocument()
        doc_format.apply_page_layout(document)

    result = convert_markdown(markdown, DocxSink(document), config, start_index=start_index, renderer=renderer)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    document.save(output_path)
    return result
