from __future__ import annotations

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls
from docx.shared import Cm, Pt, RGBColor

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297

MARGIN_LEFT_CM = 3.0
MARGIN_RIGHT_CM = 1.5
MARGIN_TOP_CM = 2.0
MARGIN_BOTTOM_CM = 2.0

CODE_FONT_NAME = "Courier New"
CODE_FONT_SIZE_PT = 10
CAPTION_FONT_SIZE_PT = 9
RULE_FONT_SIZE_PT = 11
TABLE_HEADER_FONT_SIZE_PT = 11

HEADING_SPACE_BEFORE_PT = 12
HEADING_SPACE_AFTER_PT = 6
PARAGRAPH_SPACE_AFTER_PT = 6
INDENT_STEP_PT = 36

RULE_GLYPHS = "─" * 40

LINK_COLOR = RGBColor(0x09, 0x69, 0xDA)
QUOTE_COLOR = RGBColor(0x57, 0x60, 0x6A)
CAPTION_COLOR = RGBColor(0x5F, 0x63, 0x68)
RULE_COLOR = RGBColor(0xD0, 0xD7, 0xDE)
CODE_TEXT_COLOR = RGBColor(0x24, 0x29, 0x2E)

CODE_BLOCK_FILL = "F6F8FA"
INLINE_CODE_FILL = "EFF1F3"
TABLE_HEADER_FILL = "F6F8FA"

# EMU per pixel at 96 dpi
EMU_PER_PX = 9525


def apply_page_layout(doc) -> None:
    """Apply A4 page setup and margins."""
    section = doc.sections[0]
    section.page_height = Cm(A4_HEIGHT_MM / 10)
    section.page_width = Cm(A4_WIDTH_MM / 10)
    section.left_margin = Cm(MARGIN_LEFT_CM)
    section.right_margin = Cm(MARGIN_RIGHT_CM)
    section.top_margin = Cm(MARGIN_TOP_CM)
    section.bottom_margin = Cm(MARGIN_BOTTOM_CM)


def set_shading(element, fill: str) -> None:
    element.append(parse_xml(f'<w:shd {nsdecls("w")} w:fill="{fill}" w:val="clear"/>'))


def set_run_style(run, bold: bool = False, italic: bool = False, strike: bool = False, code: bool = False) -> None:
    run.bold = bold or None
    run.italic = italic or None
    if strike:
        run.font.strike = True
    if code:
        run.font.name = CODE_FONT_NAME
        run.font.size = Pt(CODE_FONT_SIZE_PT)
        run.font.color.rgb = CODE_TEXT_COLOR
        set_shading(run._element.get_or_add_rPr(), INLINE_CODE_FILL)


def apply_heading_format(paragraph) -> None:
    paragraph.paragraph_format.space_before = Pt(HEADING_SPACE_BEFORE_PT)
    paragraph.paragraph_format.space_after = Pt(HEADING_SPACE_AFTER_PT)


def apply_body_paragraph_format(paragraph) -> None:
    paragraph.paragraph_format.space_after = Pt(PARAGRAPH_SPACE_AFTER_PT)


def apply_blockquote_format(paragraph) -> None:
    paragraph.paragraph_format.left_indent = Pt(INDENT_STEP_PT)
    paragraph.paragraph_format.first_line_indent = Pt(INDENT_STEP_PT)
    paragraph.paragraph_format.space_before = Pt(6)
    paragraph.paragraph_format.space_after = Pt(6)
    for run in paragraph.runs:
        run.italic = True
        if run.font.color.rgb is None:
            run.font.color.rgb = QUOTE_COLOR


def apply_caption_format(paragraph) -> None:
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.paragraph_format.space_before = Pt(4)
    paragraph.paragraph_format.space_after = Pt(12)
    for run in paragraph.runs:
        run.italic = True
        run.font.size = Pt(CAPTION_FONT_SIZE_PT)
        run.font.color.rgb = CAPTION_COLOR


def apply_rule_format(paragraph) -> None:
    paragraph.paragraph_format.space_before = Pt(12)
    paragraph.paragraph_format.space_after = Pt(12)
    for run in paragraph.runs:
        run.font.size = Pt(RULE_FONT_SIZE_PT)
        run.font.color.rgb = RULE_COLOR


def px_to_emu(px: int) -> int:
    return int(px) * EMU_PER_PX
