from __future__ import annotations

import io
import logging
from typing import List

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Pt
from docx.text.paragraph import Paragraph as DocxParagraph

from . import doc_format
from .model import (
    Alignment,
    Block,
    Blockquote,
    Caption,
    CodeBlock,
    Heading,
    HorizontalRule,
    Image,
    InlineRun,
    LinkSegment,
    ListBlock,
    MermaidBlock,
    Paragraph,
    Style,
    Table,
)
from .sink import DocumentSink

logger = logging.getLogger(__name__)

_PARAGRAPH_ALIGNMENT = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
}


class DocxSink(DocumentSink):
    """Inserts blocks into the body of a python-docx ``Document``.

    Every element is first appended by python-docx and then moved to its
    target position among the body's block-level children.
    """

    def __init__(self, document, comment_author: str = "MarkDocs"):
        self.document = document
        self.comment_author = comment_author
        self._body = document.element.body

    def child_count(self) -> int:
        return len(self._children())

    def insert_at(self, index: int, block: Block) -> int:
        if not 0 <= index <= self.child_count():
            raise IndexError(f"Insert position {index} outside document body")
        elements = self._build(block)
        for offset, element in enumerate(elements):
            self._body.remove(element)
            self._body.insert(index + offset, element)
        return index + len(elements)

    def annotate(self, index: int, text: str) -> bool:
        add_comment = getattr(self.document, "add_comment", None)
        if add_comment is None:
            logger.info("Installed python-docx cannot create comments")
            return False
        element = self._element_at(index)
        if element.tag != qn("w:p"):
            return False
        runs = DocxParagraph(element, self.document._body).runs
        if not runs:
            return False
        add_comment(runs, text=text, author=self.comment_author)
        return True

    def set_alt_text(self, index: int, description: str, title: str) -> None:
        doc_prs = self._element_at(index).xpath(".//wp:docPr")
        if not doc_prs:
            raise TypeError(f"Element at {index} is not an image")
        doc_prs[0].set("descr", description)
        doc_prs[0].set("title", title)

    def _children(self) -> list:
        return [child for child in self._body.iterchildren() if child.tag != qn("w:sectPr")]

    def _element_at(self, index: int):
        children = self._children()
        if not 0 <= index < len(children):
            raise IndexError(f"No element at position {index}")
        return children[index]

    def _build(self, block: Block) -> list:
        if isinstance(block, Heading):
            return [self._heading(block)]
        if isinstance(block, Paragraph):
            return [self._paragraph(block)]
        if isinstance(block, CodeBlock):
            return [self._code_block(block)]
        if isinstance(block, Table):
            return [self._table(block)]
        if isinstance(block, Blockquote):
            return [self._blockquote(block)]
        if isinstance(block, ListBlock):
            return self._list(block)
        if isinstance(block, HorizontalRule):
            return [self._horizontal_rule()]
        if isinstance(block, Image):
            return [self._image(block)]
        if isinstance(block, Caption):
            return [self._caption(block)]
        if isinstance(block, MermaidBlock):
            raise ValueError("Mermaid blocks must be rendered before insertion")
        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _heading(self, block: Heading):
        paragraph = self.document.add_paragraph(style=f"Heading {block.level}")
        add_inline(paragraph, block.text)
        doc_format.apply_heading_format(paragraph)
        return paragraph._p

    def _paragraph(self, block: Paragraph):
        paragraph = self.document.add_paragraph()
        add_inline(paragraph, block.text)
        doc_format.apply_body_paragraph_format(paragraph)
        return paragraph._p

    def _code_block(self, block: CodeBlock):
        table = self.document.add_table(rows=1, cols=1)
        table.style = "Table Grid"
        cell = table.cell(0, 0)
        doc_format.set_shading(cell._element.get_or_add_tcPr(), doc_format.CODE_BLOCK_FILL)
        for line_index, line in enumerate(block.lines or [""]):
            paragraph = cell.paragraphs[0] if line_index == 0 else cell.add_paragraph()
            paragraph.paragraph_format.space_after = Pt(0)
            run = paragraph.add_run(line)
            run.font.name = doc_format.CODE_FONT_NAME
            run.font.size = Pt(doc_format.CODE_FONT_SIZE_PT)
            run.font.color.rgb = doc_format.CODE_TEXT_COLOR
        return table._tbl

    def _table(self, block: Table):
        col_count = max(len(row) for row in block.rows)
        table = self.document.add_table(rows=len(block.rows), cols=col_count)
        table.style = "Table Grid"
        for r_idx, row in enumerate(block.rows):
            for c_idx, cell_run in enumerate(row):
                cell = table.cell(r_idx, c_idx)
                paragraph = cell.paragraphs[0]
                add_inline(paragraph, cell_run)
                if c_idx < len(block.alignments):
                    paragraph.alignment = _PARAGRAPH_ALIGNMENT[block.alignments[c_idx]]
                if r_idx == 0:
                    doc_format.set_shading(cell._element.get_or_add_tcPr(), doc_format.TABLE_HEADER_FILL)
                    for run in paragraph.runs:
                        run.bold = True
                        run.font.size = Pt(doc_format.TABLE_HEADER_FONT_SIZE_PT)
        return table._tbl

    def _blockquote(self, block: Blockquote):
        paragraph = self.document.add_paragraph()
        add_inline(paragraph, block.text)
        doc_format.apply_blockquote_format(paragraph)
        return paragraph._p

    def _list(self, block: ListBlock) -> list:
        style = "List Number" if block.ordered else "List Bullet"
        elements = []
        for item in block.items:
            paragraph = self.document.add_paragraph(style=style)
            add_inline(paragraph, item.text)
            if item.level > 0:
                paragraph.paragraph_format.left_indent = Pt(doc_format.INDENT_STEP_PT * item.level)
            elements.append(paragraph._p)
        return elements

    def _horizontal_rule(self):
        paragraph = self.document.add_paragraph()
        paragraph.add_run(doc_format.RULE_GLYPHS)
        doc_format.apply_rule_format(paragraph)
        return paragraph._p

    def _image(self, block: Image):
        paragraph = self.document.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = paragraph.add_run()
        shape = run.add_picture(
            io.BytesIO(block.data),
            width=Emu(doc_format.px_to_emu(block.width)),
            height=Emu(doc_format.px_to_emu(block.height)),
        )
        if block.alt_text is not None:
            shape._inline.docPr.set("descr", block.alt_text)
        if block.title is not None:
            shape._inline.docPr.set("title", block.title)
        return paragraph._p

    def _caption(self, block: Caption):
        paragraph = self.document.add_paragraph()
        paragraph.add_run(block.text)
        doc_format.apply_caption_format(paragraph)
        return paragraph._p


def add_inline(paragraph, run: InlineRun) -> None:
    for segment in run:
        if isinstance(segment, LinkSegment):
            _add_hyperlink(paragraph, segment)
        else:
            text_run = paragraph.add_run(segment.text)
            _apply_styles(text_run, segment.styles)


def _apply_styles(run, styles: frozenset) -> None:
    doc_format.set_run_style(
        run,
        bold=Style.BOLD in styles,
        italic=Style.ITALIC in styles,
        strike=Style.STRIKE in styles,
        code=Style.CODE in styles,
    )


def _add_hyperlink(paragraph, segment: LinkSegment) -> None:
    r_id = paragraph.part.relate_to(segment.url, RT.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)
    run = paragraph.add_run(segment.text)
    _apply_styles(run, segment.styles)
    run.font.underline = True
    run.font.color.rgb = doc_format.LINK_COLOR
    hyperlink.append(run._r)
    paragraph._p.append(hyperlink)


def body_texts(document) -> List[str]:
    """Plain text of each block-level body element, in order."""
    texts = []
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:sectPr"):
            continue
        texts.append("".join(node.text or "" for node in child.iter(qn("w:t"))))
    return texts
