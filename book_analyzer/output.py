"""Rendering and saving of run artifacts."""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF

from book_analyzer.models import ChapterArtifact, Question


logger = logging.getLogger(__name__)

PAGE_MARGIN = 50
FONT_SIZE = 10
TITLE_FONT_SIZE = 14
HEADING_FONT_SIZE = 12
LINE_HEIGHT = FONT_SIZE + 4


class FileSink:
    """Writes artifacts into an output directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save(self, data: str | bytes, filename: str) -> Path:
        path = self.output_dir / filename
        if isinstance(data, bytes):
            path.write_bytes(data)
        else:
            path.write_text(data, encoding="utf-8")
        logger.debug("Wrote %s (%d bytes)", path, path.stat().st_size)
        return path


def metadata_header(board: str, subject: str) -> str:
    return f"---\n**Board:** {board}\n**Subject:** {subject}\n---\n\n"


def render_question_bank_markdown(artifact: ChapterArtifact) -> str:
    """Render a structured question bank as Markdown, one block per question."""
    lines = [f"# {artifact.chapter_title}", "", f"**Total Questions:** {len(artifact.questions or [])}", ""]
    if not artifact.questions:
        lines.append("No questions found in this chapter.")
    for question in artifact.questions or []:
        lines.extend([
            f"### Question {question.question_number}",
            "",
            f"**Question:** {question.question_text}",
            "",
            f"**Type:** {question.question_type.value}",
            "",
            f"**Marks:** {question.suggested_marks}",
            "",
            f"**DOK Level:** {question.dok_level}",
            "",
            f"**Bloom's Level:** {question.blooms_level.value}",
            "",
            f"**Difficulty:** {question.difficulty.value}",
            "",
        ])
    return "\n".join(lines).rstrip() + "\n"


def render_artifact(artifact: ChapterArtifact) -> str:
    """Render a chapter artifact as the Markdown file content, board and subject first."""
    header = metadata_header(artifact.board, artifact.subject)
    if artifact.is_question_bank:
        return header + render_question_bank_markdown(artifact)
    return header + (artifact.markdown or "")


def wrap_text(text: str, max_width: float, fontsize: float, fontname: str = "helv") -> list[str]:
    """Greedy word wrap using the font's measured text width."""
    lines = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


class _PageWriter:
    """Writes lines top to bottom, starting a new page when the current one is full."""

    def __init__(self, doc: fitz.Document) -> None:
        self.doc = doc
        self.page = doc.new_page()
        self.width = self.page.rect.width
        self.height = self.page.rect.height
        self.y = PAGE_MARGIN

    def ensure_space(self, required: float) -> None:
        if self.y + required > self.height - PAGE_MARGIN:
            self.page = self.doc.new_page(width=self.width, height=self.height)
            self.y = PAGE_MARGIN

    def text(self, text: str, fontsize: float = FONT_SIZE, fontname: str = "helv",
             color: tuple = (0, 0, 0), indent: float = 0) -> None:
        self.ensure_space(LINE_HEIGHT)
        self.y += fontsize
        self.page.insert_text((PAGE_MARGIN + indent, self.y), text,
                              fontsize=fontsize, fontname=fontname, color=color)
        self.y += LINE_HEIGHT - fontsize

    def rule(self, color: tuple = (0.7, 0.7, 0.7), width: float = 1) -> None:
        self.ensure_space(LINE_HEIGHT)
        self.y += LINE_HEIGHT / 2
        self.page.draw_line((PAGE_MARGIN, self.y), (self.width - PAGE_MARGIN, self.y),
                            color=color, width=width)
        self.y += LINE_HEIGHT / 2

    def skip(self, lines: float = 1) -> None:
        self.y += LINE_HEIGHT * lines


def _write_question(writer: _PageWriter, question: Question) -> None:
    writer.ensure_space(LINE_HEIGHT * 10)
    writer.text(f"Question {question.question_number}", HEADING_FONT_SIZE, "hebo", (0, 0, 0.8))
    max_width = writer.width - 2 * PAGE_MARGIN
    for line in wrap_text(question.question_text, max_width, FONT_SIZE):
        writer.text(line)
    writer.skip(0.5)
    for meta in (
        f"Type: {question.question_type.value}",
        f"Marks: {question.suggested_marks}",
        f"DOK Level: {question.dok_level}",
        f"Bloom's: {question.blooms_level.value}",
        f"Difficulty: {question.difficulty.value}",
    ):
        writer.text(meta, FONT_SIZE - 1, color=(0.4, 0.4, 0.4), indent=20)
    writer.rule(color=(0.85, 0.85, 0.85), width=0.5)


def render_question_bank_pdf(artifact: ChapterArtifact) -> bytes:
    """Lay out a question bank as a printable PDF and return its bytes."""
    doc = fitz.open()
    try:
        writer = _PageWriter(doc)
        writer.text(f"Board: {artifact.board}", fontname="hebo")
        writer.text(f"Subject: {artifact.subject}", fontname="hebo")
        writer.text(f"Chapter: {artifact.chapter_title}", TITLE_FONT_SIZE, "hebo", (0, 0, 0.5))
        writer.rule()
        writer.text(f"Total Questions: {len(artifact.questions or [])}", color=(0.3, 0.3, 0.3))
        writer.skip()
        for question in artifact.questions or []:
            _write_question(writer, question)
        return doc.tobytes()
    finally:
        doc.close()
