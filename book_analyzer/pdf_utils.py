"""PDF loading, text extraction and page slicing utilities."""

import logging

import fitz  # PyMuPDF

from book_analyzer.models import Chapter


logger = logging.getLogger(__name__)


def open_pdf(data: bytes) -> fitz.Document:
    """Open a PDF from raw bytes. The caller is responsible for closing it."""
    return fitz.open(stream=data, filetype="pdf")


def get_total_pages(data: bytes) -> int:
    """Get the total number of pages in a PDF given as bytes."""
    doc = open_pdf(data)
    total = doc.page_count
    doc.close()
    return total


def extract_text(doc: fitz.Document, start_page: int, end_page: int) -> str:
    """
    Extract the text of pages start_page..end_page (1-indexed, inclusive).

    The end is clamped to the document length; pages are separated by a blank line.
    """
    last = min(end_page, doc.page_count)
    texts = []
    for page_num in range(max(1, start_page), last + 1):
        texts.append(doc[page_num - 1].get_text())
    return "\n\n".join(texts)


def extract_text_from_bytes(data: bytes) -> str:
    """Extract the text of every page of a PDF given as bytes."""
    doc = open_pdf(data)
    try:
        return extract_text(doc, 1, doc.page_count)
    finally:
        doc.close()


def slice_pages(doc: fitz.Document, start_page: int, end_page: int) -> bytes | None:
    """
    Copy pages start_page..end_page (1-indexed, inclusive) into a new PDF.

    The range is clamped to the document; returns None when nothing is left.
    The source document is not modified.
    """
    start = max(1, start_page)
    end = min(doc.page_count, end_page)
    if start > end:
        return None

    # PyMuPDF uses 0-indexed pages
    new_doc = fitz.open()
    try:
        new_doc.insert_pdf(doc, from_page=start - 1, to_page=end - 1)
        return new_doc.tobytes()
    finally:
        new_doc.close()


def slice_chapter(doc: fitz.Document, chapter: Chapter) -> bytes | None:
    """Return the bytes of a PDF holding exactly the chapter's pages, or None if the range is empty."""
    data = slice_pages(doc, chapter.start_page, chapter.end_page)
    if data is None:
        logger.debug(
            "Empty slice for '%s' (pages %s-%s of %s)",
            chapter.title, chapter.start_page, chapter.end_page, doc.page_count,
        )
    return data
