import fitz

from book_analyzer.models import Chapter
from book_analyzer.pdf_utils import (
    extract_text,
    extract_text_from_bytes,
    get_total_pages,
    open_pdf,
    slice_chapter,
    slice_pages,
)


def page_texts(data: bytes) -> list[str]:
    doc = fitz.open(stream=data, filetype="pdf")
    texts = [page.get_text().strip() for page in doc]
    doc.close()
    return texts


def test_slice_chapter_copies_exact_page_range(twenty_page_doc):
    data = slice_chapter(twenty_page_doc, Chapter(title="Ch", start_page=5, end_page=10))

    assert page_texts(data) == [f"Page {n}" for n in range(5, 11)]


def test_slice_chapter_beyond_document_returns_none(twenty_page_doc):
    assert slice_chapter(twenty_page_doc, Chapter(title="Ch", start_page=25, end_page=30)) is None


def test_slice_chapter_clamps_end_to_page_count(twenty_page_doc):
    data = slice_chapter(twenty_page_doc, Chapter(title="Ch", start_page=15, end_page=30))

    assert page_texts(data) == [f"Page {n}" for n in range(15, 21)]


def test_slice_pages_clamps_start_to_first_page(twenty_page_doc):
    data = slice_pages(twenty_page_doc, 0, 3)

    assert page_texts(data) == ["Page 1", "Page 2", "Page 3"]


def test_slicing_is_repeatable_and_leaves_source_untouched(twenty_page_doc):
    chapter = Chapter(title="Ch", start_page=2, end_page=4)

    first = slice_chapter(twenty_page_doc, chapter)
    second = slice_chapter(twenty_page_doc, chapter)

    assert page_texts(first) == page_texts(second) == ["Page 2", "Page 3", "Page 4"]
    assert twenty_page_doc.page_count == 20
    assert twenty_page_doc[0].get_text().strip() == "Page 1"


def test_extract_text_covers_requested_pages_only(twenty_page_doc):
    text = extract_text(twenty_page_doc, 1, 3)

    assert "Page 1" in text and "Page 3" in text
    assert "Page 4" not in text


def test_extract_text_clamps_to_document_length(pdf_factory):
    doc = open_pdf(pdf_factory(5))
    try:
        text = extract_text(doc, 1, 20)
    finally:
        doc.close()

    assert text.count("Page") == 5


def test_extract_text_from_bytes_and_page_count(pdf_factory):
    data = pdf_factory(3)

    assert get_total_pages(data) == 3
    assert [line for line in extract_text_from_bytes(data).split("\n") if line] == ["Page 1", "Page 2", "Page 3"]
