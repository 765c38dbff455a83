from __future__ import annotations

from docx.oxml.ns import qn
from docx.table import Table as DocxTable

NO_SOURCE_TEXT = "No source code stored"
DEFAULT_IMAGE_TITLE = "Mermaid Diagram"


def inspect_element(document, index: int) -> dict:
    """Describe the body element at ``index``: a diagram image or a code block."""
    children = [child for child in document.element.body.iterchildren() if child.tag != qn("w:sectPr")]
    if not 0 <= index < len(children):
        return {"error": "No element selected"}
    element = children[index]

    doc_prs = element.xpath(".//wp:docPr") if element.tag == qn("w:p") else []
    if doc_prs:
        description = doc_prs[0].get("descr") or ""
        return {
            "type": "image",
            "alt_text": description or NO_SOURCE_TEXT,
            "title": doc_prs[0].get("title") or DEFAULT_IMAGE_TITLE,
            "has_source": bool(description),
        }

    if element.tag == qn("w:tbl"):
        table = DocxTable(element, document._body)
        if table.rows:
            return {"type": "code", "content": table.cell(0, 0).text, "language": "detected"}

    return {"error": "Selected element is not an image or code block"}
