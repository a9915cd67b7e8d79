"""AI/API utilities for chapter detection and question extraction."""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from book_analyzer.config import PipelineConfig
from book_analyzer.errors import ModelResponseError
from book_analyzer.models import BookMetadata, ChapterArtifact, Question
from book_analyzer.pdf_utils import extract_text_from_bytes


logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json|markdown)?\s*([\s\S]*?)\s*```")

CHAPTER_SYSTEM_PROMPT = (
    "You are an expert document analyzer that reads textbook tables of contents. "
    "Always respond with valid JSON only."
)

CHAPTER_PROMPT = """Analyze the table of contents of a textbook and list its chapters.

Section numbers use DECIMALS ("1.1", "2.3", "5.1-5.61") and are NOT page numbers.
Page numbers are WHOLE INTEGERS ("1", "15", "138").

Common TOC formats:
- "REAL NUMBERS ................ 15" -> startPage 15
- "REAL NUMBERS    1.1-1.64    15" -> section range 1.1-1.64 (ignore), startPage 15
- "1. REAL NUMBERS    1.1-1.64" -> only section ranges are shown; use the page numbers
  printed in the page headers or footers, or estimate 30-50 pages per chapter.

Rules:
1. List only the main chapters, in book order
2. Ignore preface, index, appendices, answers and similar front/back matter
3. endPage is the page before the next chapter starts
4. NEVER use decimal numbers as page numbers

Return ONLY a valid JSON array. Example format:
[{"chapterTitle": "Real Numbers", "startPage": 1, "endPage": 14}, {"chapterTitle": "Polynomials", "startPage": 15, "endPage": 40}]"""

QUESTION_SYSTEM_PROMPT = "You are a pedagogical expert who analyzes textbook chapters."

MARKDOWN_QUESTION_PROMPT = """Extract all questions present in this book chapter.
This includes text-based questions AND questions presented as images (diagrams, charts,
figures that require interpretation).

- For text-based questions, provide the full text.
- For image-based questions, provide a detailed description of the image and what it is asking.

For every question determine its difficulty level (Easy, Medium, or Hard) and its
Bloom's Taxonomy level (Remembering, Understanding, Applying, Analyzing, Evaluating, Creating).

Format the output as a single Markdown document, using this structure for each question:

### Question [Number]

**Question:** [The full text of the question, or a description of the image-based question]

**Difficulty:** [Easy/Medium/Hard]

**Bloom's Level:** [Remembering/Understanding/Applying/Analyzing/Evaluating/Creating]

If no questions are found in the chapter, return a single message: 'No questions found in this chapter.'"""

STRUCTURED_QUESTION_PROMPT = """Extract all questions present in this book chapter of a {board} {subject}
textbook (chapter: "{chapter_title}"), including questions presented as images.

For every question return an object with these fields:
- questionNumber: integer, starting at 1
- questionText: the full text, or a detailed description of an image-based question
- questionType: one of "MCQ", "Short Answer", "Long Answer", "Case Based", "Very Short Answer",
  "Assertion-Reason", "Fill in the Blanks", "True/False", "Match the Following"
- suggestedMarks: integer marks appropriate for the {board} board
- dokLevel: Depth of Knowledge, 1=Recall, 2=Skill/Concept, 3=Strategic Thinking, 4=Extended Thinking
- bloomsLevel: one of "Remembering", "Understanding", "Applying", "Analyzing", "Evaluating", "Creating"
- difficulty: one of "Easy", "Medium", "Hard"

Return ONLY a valid JSON array of these objects. Return [] if the chapter has no questions."""


def get_ai_client(api_key: str, base_url: str, max_retries: int = 2, timeout: float = 120.0) -> OpenAI:
    """Create and return an OpenAI client configured for the API."""
    return OpenAI(
        api_key=api_key,
        base_url=base_url,
        max_retries=max_retries,
        timeout=timeout,
    )


def strip_code_fence(response_text: str) -> str:
    """Return the body of the first Markdown code block, or the text unchanged."""
    if "```" in response_text:
        match = CODE_FENCE_PATTERN.search(response_text)
        if match:
            return match.group(1)
    return response_text


def parse_json_response(response_text: str) -> Any:
    """Parse a JSON reply from the model, tolerating a surrounding code block."""
    try:
        return json.loads(strip_code_fence(response_text.strip()))
    except json.JSONDecodeError as e:
        raise ModelResponseError(f"Could not parse AI response as JSON: {e}") from e


def _unwrap_list(payload: Any, key: str) -> list:
    """Accept a bare JSON array, or an object holding the array under ``key``."""
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    if isinstance(payload, list):
        return payload
    raise ModelResponseError(f"Expected a JSON array of {key}, got {type(payload).__name__}")


def parse_questions(payload: Any) -> list[Question]:
    """Build Question records from the model's JSON, dropping entries that don't fit the schema."""
    questions = []
    for item in _unwrap_list(payload, "questions"):
        try:
            questions.append(Question.model_validate(item))
        except ValidationError as e:
            logger.warning("Dropping malformed question %r: %s", item, e.errors()[0]["msg"])
    return questions


def _pdf_part(data: bytes, filename: str) -> dict:
    encoded = base64.b64encode(data).decode("ascii")
    return {
        "type": "file",
        "file": {"filename": filename, "file_data": f"data:application/pdf;base64,{encoded}"},
    }


class ChapterAnalyzer:
    """
    Chapter detection and question extraction over an OpenAI-compatible API.

    ``config.input_mode`` picks whether documents are sent as extracted text or as
    PDF file parts; ``config.output_format`` picks free Markdown or a structured
    question bank.
    """

    def __init__(self, config: PipelineConfig, client: OpenAI | None = None) -> None:
        self.config = config
        self.client = client or get_ai_client(
            config.require_api_key(), config.base_url, config.max_retries, config.timeout
        )

    @property
    def input_mode(self) -> str:
        return self.config.input_mode

    def _complete(self, system_prompt: str, prompt: str, document: str | bytes | None, label: str) -> str:
        if isinstance(document, bytes):
            user_content: Any = [{"type": "text", "text": prompt}, _pdf_part(document, f"{label}.pdf")]
        elif document:
            user_content = f"{prompt}\n\n--- {label} text ---\n{document}"
        else:
            user_content = prompt

        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            temperature=0.1,
        )
        response_text = (response.choices[0].message.content or "").strip()
        if not response_text:
            raise ModelResponseError("The AI service returned an empty response.")
        return response_text

    def detect_chapters(self, excerpt: str | bytes) -> list:
        """
        Ask the model for the chapter list of a book from its opening pages.

        ``excerpt`` is the extracted text, or the PDF bytes in pdf input mode.
        Returns raw candidates; they are untrusted and must be validated.
        """
        try:
            response_text = self._complete(CHAPTER_SYSTEM_PROMPT, CHAPTER_PROMPT, excerpt, "toc")
        except OpenAIError as e:
            raise ModelResponseError(f"Failed to analyze the book's table of contents: {e}") from e
        return _unwrap_list(parse_json_response(response_text), "chapters")

    def extract_questions(self, chapter_pdf: bytes, metadata: BookMetadata, chapter_title: str) -> ChapterArtifact:
        """Extract and classify the questions of one sliced chapter."""
        document: str | bytes = chapter_pdf
        if self.input_mode == "text":
            text = extract_text_from_bytes(chapter_pdf)
            if text.strip():
                document = text
            else:
                logger.warning(
                    "No text found in chapter '%s'; the pages may be scanned. Sending the PDF instead.",
                    chapter_title,
                )

        if self.config.output_format == "questions":
            prompt = STRUCTURED_QUESTION_PROMPT.format(
                board=metadata.board, subject=metadata.subject, chapter_title=chapter_title
            )
            system_prompt = QUESTION_SYSTEM_PROMPT + " Always respond with valid JSON only."
        else:
            prompt = MARKDOWN_QUESTION_PROMPT
            system_prompt = QUESTION_SYSTEM_PROMPT

        try:
            response_text = self._complete(system_prompt, prompt, document, "chapter")
        except OpenAIError as e:
            raise ModelResponseError(f"Failed to analyze the chapter content: {e}") from e

        if self.config.output_format == "questions":
            return ChapterArtifact(
                board=metadata.board,
                subject=metadata.subject,
                chapter_title=chapter_title,
                questions=parse_questions(parse_json_response(response_text)),
            )
        return ChapterArtifact(
            board=metadata.board,
            subject=metadata.subject,
            chapter_title=chapter_title,
            markdown=response_text,
        )
