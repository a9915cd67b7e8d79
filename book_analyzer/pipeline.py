"""End-to-end run: detect chapters, slice them and extract their questions."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from book_analyzer.config import PipelineConfig
from book_analyzer.errors import BookAnalyzerError, ChapterListEmpty, ConfigurationError, RunCancelled
from book_analyzer.models import BookMetadata, Chapter, RunState
from book_analyzer.output import render_artifact, render_question_bank_pdf
from book_analyzer.pdf_utils import extract_text, open_pdf, slice_chapter, slice_pages
from book_analyzer.runlog import RunLog
from book_analyzer.utils import chapter_filename, format_chapter_list
from book_analyzer.validation import validate_chapters


logger = logging.getLogger(__name__)

CHAPTER_LIST_FILENAME = "chapters.txt"


@dataclass
class RunContext:
    """Everything one run produces or reports. A new run starts from a fresh context."""

    metadata: BookMetadata = field(default_factory=BookMetadata)
    state: RunState = RunState.IDLE
    progress: str = ""
    error: str | None = None
    log: RunLog = field(default_factory=RunLog)
    chapters: list[Chapter] = field(default_factory=list)
    outputs: list[Path] = field(default_factory=list)
    skipped: list[Chapter] = field(default_factory=list)


class BookPipeline:
    """
    Runs one book through chapter detection, slicing and question extraction.

    ``analyzer`` provides ``input_mode``, ``detect_chapters(excerpt)`` and
    ``extract_questions(chapter_pdf, metadata, chapter_title)`` (see
    ChapterAnalyzer). ``sink`` provides ``save(data, filename)``.

    Chapters are processed one at a time, in order. A chapter whose page range
    is empty after clamping is skipped; any other error ends the run in the
    ``error`` state, leaving already-saved files in place.
    """

    def __init__(
        self,
        analyzer,
        sink,
        config: PipelineConfig | None = None,
        review: Callable[[list[Chapter]], list[Chapter]] | None = None,
        on_log: Callable[[str], None] | None = None,
        on_state: Callable[[RunState, str], None] | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.sink = sink
        self.config = config or PipelineConfig()
        self.review = review
        self.on_log = on_log
        self.on_state = on_state
        self.context = RunContext(log=RunLog(on_entry=on_log))
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop the run before the next chapter starts."""
        self._cancelled.set()

    def _set_state(self, state: RunState, progress: str) -> None:
        self.context.state = state
        self.context.progress = progress
        if self.on_state is not None:
            self.on_state(state, progress)

    def run(self, pdf_bytes: bytes, metadata: BookMetadata, chapters: list | None = None) -> RunContext:
        """
        Process a book and return the run context. Never raises for run failures.

        Args:
            pdf_bytes: The source PDF
            metadata: Board and subject, both required
            chapters: Optional chapter candidates to use instead of asking the model
        """
        self._cancelled.clear()
        self.context = RunContext(metadata=metadata, log=RunLog(on_entry=self.on_log))
        log = self.context.log

        try:
            if not metadata.is_complete:
                raise ConfigurationError("Please select board and enter subject before analyzing.")

            log.add("Process started.")
            log.add(f"Board: {metadata.board}, Subject: {metadata.subject}")
            validated = self.find_chapters(pdf_bytes, chapters)

            if self.review is not None:
                self._set_state(RunState.REVIEWING_CHAPTERS, "Waiting for chapter review...")
                reviewed = self.review(list(validated))
                # Reviewed ranges are user-confirmed; only structural checks run again
                validated = validate_chapters(reviewed, self.config.page_cap, suspicious_band=None, log=log)
                log.add(f"Chapter review confirmed {len(validated)} chapters.")

            self.context.chapters = validated
            log.add(f"Generating {CHAPTER_LIST_FILENAME}.")
            self._save(format_chapter_list(validated), CHAPTER_LIST_FILENAME)
            log.add(f"{CHAPTER_LIST_FILENAME} saved successfully.")

            self._set_state(RunState.PROCESSING_CHAPTERS, "Chapter list saved. Processing individual chapters...")
            self._process_chapters(pdf_bytes, metadata, validated)

            self._set_state(RunState.DONE, "Processing complete! All files have been saved.")
            log.add("All chapters have been processed. Task finished.")
        except Exception as e:
            message = str(e) or "An unknown error occurred during processing."
            logger.debug("Run failed", exc_info=True)
            self.context.error = message
            log.add(f"ERROR: {message}", logging.ERROR)
            self._set_state(RunState.ERROR, message)

        return self.context

    def find_chapters(self, pdf_bytes: bytes, chapters: list | None) -> list[Chapter]:
        """Detect chapters from the opening pages (or take ``chapters``) and validate them."""
        log = self.context.log
        toc_pages = self.config.toc_pages
        self._set_state(RunState.LOADING_PDF, "Loading PDF and extracting table of contents...")

        if chapters is not None:
            log.add(f"Using {len(chapters)} supplied chapters, skipping chapter detection.")
            self._set_state(RunState.ANALYZING_TOC, "Validating supplied chapter list...")
            raw = chapters
        else:
            excerpt = self._load_excerpt(pdf_bytes)
            self._set_state(RunState.ANALYZING_TOC, "Analyzing table of contents...")
            log.add(f"Sending the first {toc_pages} pages to {self.config.model} for chapter detection.")
            raw = self.analyzer.detect_chapters(excerpt)
            if not raw:
                raise ChapterListEmpty(f"Could not identify chapters from the book's first {toc_pages} pages.")
            log.add(f"AI service identified {len(raw)} chapters.")

        validated = validate_chapters(raw, self.config.page_cap, log=log)
        if len(validated) != len(raw):
            log.add(f"{len(validated)} of {len(raw)} chapters passed validation.")
        return validated

    def _load_excerpt(self, pdf_bytes: bytes) -> str | bytes:
        log = self.context.log
        toc_pages = self.config.toc_pages
        doc = open_pdf(pdf_bytes)
        try:
            if self.analyzer.input_mode == "pdf":
                log.add(f"Extracting the first {toc_pages} pages for Table of Contents analysis.")
                excerpt = slice_pages(doc, 1, toc_pages)
                if excerpt is None:
                    raise BookAnalyzerError("The PDF has no pages.")
            else:
                log.add(f"Extracting text from first {toc_pages} pages for Table of Contents analysis.")
                excerpt = extract_text(doc, 1, toc_pages)
                if not excerpt.strip():
                    log.warning("No text found in the opening pages; the PDF may be scanned. Try the pdf input mode.")
        finally:
            doc.close()
        log.add("Extraction complete.")
        return excerpt

    def _process_chapters(self, pdf_bytes: bytes, metadata: BookMetadata, chapters: list[Chapter]) -> None:
        log = self.context.log
        log.add("Loading full PDF document into memory for slicing...")
        doc = open_pdf(pdf_bytes)
        log.add(f"PDF loaded ({doc.page_count} pages).")
        try:
            for ordinal, chapter in enumerate(chapters, 1):
                if self._cancelled.is_set():
                    raise RunCancelled("Run cancelled by user.")
                self._process_chapter(doc, metadata, ordinal, chapter, len(chapters))
        finally:
            doc.close()

    def _process_chapter(self, doc, metadata: BookMetadata, ordinal: int, chapter: Chapter, total: int) -> None:
        log = self.context.log
        self._set_state(
            RunState.PROCESSING_CHAPTERS,
            f'Slicing Chapter {ordinal}/{total}: "{chapter.title}"',
        )
        log.add(f'Slicing Chapter {ordinal}: "{chapter.title}" (pages {chapter.start_page}-{chapter.end_page}).')
        chapter_pdf = slice_chapter(doc, chapter)
        if chapter_pdf is None:
            log.warning(f"Skipping Chapter {ordinal} - page range seems invalid or empty.")
            self.context.skipped.append(chapter)
            return
        log.add(f"Slicing complete. Chapter size: {round(len(chapter_pdf) / 1024)} KB.")

        self._set_state(
            RunState.PROCESSING_CHAPTERS,
            f'Analyzing Chapter {ordinal}/{total}: "{chapter.title}"',
        )
        log.add("Sending chapter to the AI service for question extraction.")
        artifact = self.analyzer.extract_questions(chapter_pdf, metadata, chapter.title)
        log.add("Received analysis from the AI service.")

        filename = chapter_filename(ordinal, chapter.title)
        log.add(f"Saving Markdown file: {filename}")
        self._save(render_artifact(artifact), filename)

        if self.config.question_pdf and artifact.is_question_bank:
            pdf_name = chapter_filename(ordinal, chapter.title, "_questions.pdf")
            log.add(f"Saving question bank PDF: {pdf_name}")
            self._save(render_question_bank_pdf(artifact), pdf_name)

    def _save(self, data: str | bytes, filename: str) -> None:
        path = self.sink.save(data, filename)
        self.context.outputs.append(Path(path) if path is not None else Path(filename))
