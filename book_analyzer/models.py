"""Typed models shared across the analyzer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


KNOWN_BOARDS = ("CBSE", "ICSE", "State Board", "IB", "Cambridge", "Other")


class RunState(str, Enum):
    IDLE = "idle"
    LOADING_PDF = "loading_pdf"
    ANALYZING_TOC = "analyzing_toc"
    REVIEWING_CHAPTERS = "reviewing_chapters"
    PROCESSING_CHAPTERS = "processing_chapters"
    DONE = "done"
    ERROR = "error"


class QuestionType(str, Enum):
    MCQ = "MCQ"
    SHORT_ANSWER = "Short Answer"
    LONG_ANSWER = "Long Answer"
    CASE_BASED = "Case Based"
    VERY_SHORT_ANSWER = "Very Short Answer"
    ASSERTION_REASON = "Assertion-Reason"
    FILL_IN_THE_BLANKS = "Fill in the Blanks"
    TRUE_FALSE = "True/False"
    MATCH_THE_FOLLOWING = "Match the Following"


class BloomsLevel(str, Enum):
    REMEMBERING = "Remembering"
    UNDERSTANDING = "Understanding"
    APPLYING = "Applying"
    ANALYZING = "Analyzing"
    EVALUATING = "Evaluating"
    CREATING = "Creating"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Chapter(BaseModel):
    """A chapter and its inclusive, 1-based page range in the source PDF."""

    model_config = ConfigDict(frozen=True)

    title: str
    start_page: int
    end_page: int


class BookMetadata(BaseModel):
    """Board and subject the user supplies for a run."""

    board: str = ""
    subject: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.board.strip() and self.subject.strip())


class Question(BaseModel):
    """One extracted question with its classification.

    The model replies in camelCase, so each field also accepts its camelCase alias.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question_number: int = Field(alias="questionNumber", ge=1)
    question_text: str = Field(alias="questionText", min_length=1)
    question_type: QuestionType = Field(alias="questionType")
    suggested_marks: int = Field(alias="suggestedMarks", ge=0)
    dok_level: int = Field(alias="dokLevel", ge=1, le=4)
    blooms_level: BloomsLevel = Field(alias="bloomsLevel")
    difficulty: Difficulty


class ChapterArtifact(BaseModel):
    """Result of analyzing one sliced chapter.

    Exactly one of ``markdown`` or ``questions`` is set.
    """

    model_config = ConfigDict(frozen=True)

    board: str
    subject: str
    chapter_title: str
    markdown: str | None = None
    questions: list[Question] | None = None

    @property
    def is_question_bank(self) -> bool:
        return self.questions is not None
