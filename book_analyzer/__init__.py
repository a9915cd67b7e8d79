"""
Book Analyzer - Split textbook PDFs into chapters and extract their questions using AI.
"""

from book_analyzer.ai_utils import ChapterAnalyzer
from book_analyzer.config import PipelineConfig
from book_analyzer.errors import ChapterListEmpty, ModelResponseError
from book_analyzer.models import BookMetadata, Chapter, ChapterArtifact, Question, RunState
from book_analyzer.pdf_utils import slice_chapter
from book_analyzer.pipeline import BookPipeline, RunContext
from book_analyzer.utils import format_chapter_list, sanitize_filename
from book_analyzer.validation import validate_chapters

__version__ = "0.1.0"
__all__ = [
    "BookMetadata",
    "BookPipeline",
    "Chapter",
    "ChapterAnalyzer",
    "ChapterArtifact",
    "ChapterListEmpty",
    "ModelResponseError",
    "PipelineConfig",
    "Question",
    "RunContext",
    "RunState",
    "format_chapter_list",
    "sanitize_filename",
    "slice_chapter",
    "validate_chapters",
]
