from pathlib import Path

from docx import Document as DocxDocument

from MarkDocs import converter
from MarkDocs.converter import caption_preview, convert_file, convert_markdown
from MarkDocs.mermaid_renderer import MermaidRenderer
from MarkDocs.model import (
    Caption,
    CodeBlock,
    Heading,
    Image,
    ListBlock,
    Paragraph,
    ProviderConfig,
    RetentionMode,
)
from MarkDocs.renderer_docx import body_texts
from MarkDocs.sink import BlockArena

from conftest import FakeResponse, FakeSession

MARKDOWN = "# Report\n\n```mermaid\ngraph TD\n  A-->B\n```\n\n- one\n- two\n\nEnd."


def _renderer(*responses):
    return MermaidRenderer(session=FakeSession(responses=list(responses)))


def test_empty_input_is_rejected_without_touching_sink():
    sink = BlockArena()
    for text in (None, "", "  \n\t"):
        result = convert_markdown(text, sink, ProviderConfig())
        assert not result.success
        assert result.message == converter.EMPTY_INPUT_MESSAGE
    assert sink.blocks == []


def test_diagram_with_alt_retention(png_bytes):
    sink = BlockArena()
    result = convert_markdown(MARKDOWN, sink, ProviderConfig(), renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert result.success
    assert result.message == converter.SUCCESS_MESSAGE
    assert [type(block) for block in sink.blocks] == [Heading, Image, ListBlock, ListBlock, Paragraph]
    image = sink.blocks[1]
    assert image.alt_text == "graph TD\n  A-->B"
    assert image.title == converter.SOURCE_TITLE


def test_diagram_with_caption_retention(png_bytes):
    sink = BlockArena()
    config = ProviderConfig(code_retention=RetentionMode.CAPTION)
    convert_markdown(MARKDOWN, sink, config, renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert isinstance(sink.blocks[1], Image)
    assert sink.blocks[1].alt_text is None
    assert sink.blocks[2] == Caption(text="📊 Source: graph TD   A-->B")


def test_caption_preview_truncates():
    preview = caption_preview("x" * 250)
    assert preview == "x" * 200 + "..."
    assert caption_preview("a\nb") == "a b"


def test_comment_retention_uses_annotation(png_bytes):
    sink = BlockArena(supports_annotations=True)
    config = ProviderConfig(code_retention=RetentionMode.COMMENT)
    convert_markdown(MARKDOWN, sink, config, renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert "graph TD\n  A-->B" in sink.annotations[1]
    assert sink.blocks[1].alt_text is None


def test_comment_retention_falls_back_to_alt(png_bytes):
    sink = BlockArena()
    config = ProviderConfig(code_retention=RetentionMode.COMMENT)
    convert_markdown(MARKDOWN, sink, config, renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert sink.annotations == {}
    assert sink.blocks[1].alt_text == "graph TD\n  A-->B"


def test_none_retention_discards_source(png_bytes):
    sink = BlockArena()
    config = ProviderConfig(code_retention=RetentionMode.NONE)
    convert_markdown(MARKDOWN, sink, config, renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert sink.blocks[1].alt_text is None
    assert len(sink.blocks) == 5


def test_failed_diagram_keeps_source_as_code():
    sink = BlockArena()
    renderer = _renderer(FakeResponse(400, text="bad"), FakeResponse(500, text="down"))
    result = convert_markdown(MARKDOWN, sink, ProviderConfig(), renderer=renderer)
    assert result.success
    code = sink.blocks[1]
    assert isinstance(code, CodeBlock) and code.language == "mermaid"
    assert code.lines[0] == "%% Error: kroki: Syntax error: bad; mermaid.ink: HTTP 500: down"
    assert code.lines[-2:] == ["graph TD", "  A-->B"]


def test_start_index_inserts_before_existing_content():
    sink = BlockArena()
    convert_markdown("existing", sink, ProviderConfig())
    convert_markdown("# new\nline", sink, ProviderConfig(), start_index=0)
    assert [type(block) for block in sink.blocks] == [Heading, Paragraph, Paragraph]


class _BrokenSink(BlockArena):
    def insert_at(self, index, block):
        if isinstance(block, Paragraph):
            raise RuntimeError("host refused paragraph")
        return super().insert_at(index, block)


def test_sink_error_is_reported_and_earlier_blocks_remain():
    sink = _BrokenSink()
    result = convert_markdown("# ok\ntext\n# never", sink, ProviderConfig())
    assert not result.success
    assert result.message == "Error: host refused paragraph"
    assert len(sink.blocks) == 1


def test_convert_file_writes_docx(tmp_path: Path, png_bytes):
    source = tmp_path / "notes.md"
    source.write_text(MARKDOWN, encoding="utf-8")
    output = tmp_path / "out" / "notes.docx"
    result = convert_file(source, output, ProviderConfig(), renderer=_renderer(FakeResponse(200, content=png_bytes)))
    assert result.success
    document = DocxDocument(output)
    assert body_texts(document) == ["Report", "", "one", "two", "End."]
    assert len(document.inline_shapes) == 1


def test_convert_file_into_existing_document(tmp_path: Path):
    existing = tmp_path / "existing.docx"
    document = DocxDocument()
    document.add_paragraph("before")
    document.add_paragraph("after")
    document.save(existing)

    source = tmp_path / "insert.md"
    source.write_text("inserted", encoding="utf-8")
    result = convert_file(source, existing, ProviderConfig(), into=existing, start_index=1)
    assert result.success
    assert body_texts(DocxDocument(existing)) == ["before", "inserted", "after"]


def test_convert_file_empty_input_leaves_target_untouched(tmp_path: Path):
    existing = tmp_path / "existing.docx"
    document = DocxDocument()
    document.add_paragraph("keep me")
    document.save(existing)
    before = existing.read_bytes()

    source = tmp_path / "blank.md"
    source.write_text("  \n\n", encoding="utf-8")
    result = convert_file(source, existing, ProviderConfig(), into=existing)
    assert not result.success
    assert result.message == converter.EMPTY_INPUT_MESSAGE
    assert existing.read_bytes() == before

    fresh = tmp_path / "fresh.docx"
    assert not convert_file(source, fresh, ProviderConfig()).success
    assert not fresh.exists()


def test_numeric_control_entity_does_not_break_docx(tmp_path: Path):
    source = tmp_path / "control.md"
    source.write_text("before &#1; after", encoding="utf-8")
    output = tmp_path / "control.docx"
    result = convert_file(source, output, ProviderConfig())
    assert result.success
    assert body_texts(DocxDocument(output)) == ["before &#1; after"]
