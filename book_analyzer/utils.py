"""Shared utility functions."""

import re

from book_analyzer.models import Chapter


CHAPTER_LINE_PATTERN = re.compile(r"^(?P<title>.+): Pages (?P<start>\d+) - (?P<end>\d+)$")


def sanitize_filename(name: str) -> str:
    """Sanitize a chapter title for use in a filename."""
    sanitized = re.sub(r"[^A-Za-z0-9_\s-]", "", name)
    return re.sub(r"\s+", "_", sanitized)


def chapter_filename(ordinal: int, title: str, suffix: str = ".md") -> str:
    """Build the output filename for the chapter at 1-based ``ordinal``."""
    return f"{ordinal}_{sanitize_filename(title)}{suffix}"


def format_chapter_list(chapters: list[Chapter]) -> str:
    """Format chapters as the plain-text chapter index, one line per chapter."""
    return "\n".join(
        f"{ch.title}: Pages {ch.start_page} - {ch.end_page}" for ch in chapters
    )


def parse_chapter_list(text: str) -> list[dict]:
    """
    Parse a chapter index written by format_chapter_list back into raw candidates.

    Lines that don't match the index format are ignored so a hand-edited file
    can carry blank lines or notes. The result still has to go through
    validate_chapters.
    """
    candidates = []
    for line in text.splitlines():
        match = CHAPTER_LINE_PATTERN.match(line.strip())
        if not match:
            continue
        candidates.append({
            "title": match.group("title").strip(),
            "start_page": int(match.group("start")),
            "end_page": int(match.group("end")),
        })
    return candidates
