from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

import fitz
import pytest

from book_analyzer.errors import ModelResponseError
from book_analyzer.models import BookMetadata, ChapterArtifact, Question


def make_pdf(page_count: int) -> bytes:
    """Build a PDF whose page N carries the text "Page N"."""
    doc = fitz.open()
    for number in range(1, page_count + 1):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {number}")
    data = doc.tobytes()
    doc.close()
    return data


@dataclass
class StubAnalyzer:
    """Stands in for ChapterAnalyzer without touching the network."""

    chapters: List[Any] = field(default_factory=list)
    input_mode: str = "text"
    fail_on: set = field(default_factory=set)
    questions: List[Question] | None = None
    on_extract: Callable[[str], None] | None = None
    detect_calls: List[Any] = field(default_factory=list)
    extract_calls: List[tuple] = field(default_factory=list)

    def detect_chapters(self, excerpt):
        self.detect_calls.append(excerpt)
        return list(self.chapters)

    def extract_questions(self, chapter_pdf: bytes, metadata: BookMetadata, chapter_title: str) -> ChapterArtifact:
        self.extract_calls.append((chapter_title, chapter_pdf))
        if self.on_extract is not None:
            self.on_extract(chapter_title)
        if chapter_title in self.fail_on:
            raise ModelResponseError(f"Failed to analyze the chapter content: {chapter_title}")
        if self.questions is not None:
            return ChapterArtifact(
                board=metadata.board,
                subject=metadata.subject,
                chapter_title=chapter_title,
                questions=list(self.questions),
            )
        return ChapterArtifact(
            board=metadata.board,
            subject=metadata.subject,
            chapter_title=chapter_title,
            markdown=f"### Question 1\n\nQuestions for {chapter_title}",
        )


@dataclass
class MemorySink:
    files: Dict[str, Any] = field(default_factory=dict)

    def save(self, data, filename: str) -> Path:
        self.files[filename] = data
        return Path(filename)


@pytest.fixture()
def pdf_factory() -> Callable[[int], bytes]:
    return make_pdf


@pytest.fixture()
def twenty_page_pdf() -> bytes:
    return make_pdf(20)


@pytest.fixture()
def twenty_page_doc(twenty_page_pdf: bytes):
    doc = fitz.open(stream=twenty_page_pdf, filetype="pdf")
    yield doc
    doc.close()


@pytest.fixture()
def metadata() -> BookMetadata:
    return BookMetadata(board="CBSE", subject="Mathematics")


@pytest.fixture()
def sample_questions() -> List[Question]:
    return [
        Question(
            question_number=1,
            question_text="Prove that the square root of 2 is irrational.",
            question_type="Long Answer",
            suggested_marks=5,
            dok_level=3,
            blooms_level="Analyzing",
            difficulty="Hard",
        ),
        Question.model_validate(
            {
                "questionNumber": 2,
                "questionText": "Find the HCF of 96 and 404.",
                "questionType": "Short Answer",
                "suggestedMarks": 2,
                "dokLevel": 1,
                "bloomsLevel": "Applying",
                "difficulty": "Easy",
            }
        ),
    ]


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_URL",
        "OPENAI_MODEL",
        "OPENAI_MAX_RETRIES",
        "OPENAI_TIMEOUT",
        "BOOK_ANALYZER_INPUT_MODE",
        "BOOK_ANALYZER_OUTPUT_FORMAT",
        "BOOK_ANALYZER_TOC_PAGES",
        "BOOK_ANALYZER_PAGE_CAP",
        "BOOK_ANALYZER_QUESTION_PDF",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
