"""Validation and repair of chapter candidates returned by the model."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from book_analyzer.errors import ChapterListEmpty
from book_analyzer.models import Chapter


logger = logging.getLogger(__name__)

DEFAULT_PAGE_CAP = 5000
DEFAULT_SUSPICIOUS_BAND = (50, 200)
DEFAULT_PAGES_PER_CHAPTER = 40

_TITLE_KEYS = ("chapterTitle", "title")
_START_KEYS = ("startPage", "start_page")
_END_KEYS = ("endPage", "end_page")


def _first_present(candidate: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if candidate.get(key) is not None:
            return candidate[key]
    return None


def _coerce_page(value: Any) -> int | None:
    """Return ``value`` as an int page number, or None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


def _describe(candidate: Any) -> str:
    if isinstance(candidate, Chapter):
        return f"'{candidate.title}' ({candidate.start_page}-{candidate.end_page})"
    return repr(candidate)


def _as_mapping(candidate: Any) -> Mapping[str, Any] | None:
    if isinstance(candidate, Chapter):
        return candidate.model_dump()
    if isinstance(candidate, Mapping):
        return candidate
    return None


def validate_chapters(
    raw_candidates: Iterable[Any],
    page_cap: int = DEFAULT_PAGE_CAP,
    *,
    suspicious_band: tuple[int, int] | None = DEFAULT_SUSPICIOUS_BAND,
    pages_per_chapter: int = DEFAULT_PAGES_PER_CHAPTER,
    log=None,
) -> list[Chapter]:
    """
    Turn untrusted chapter candidates into an ordered, non-overlapping chapter list.

    Candidates may be raw dicts from the model (camelCase or snake_case keys)
    or Chapter instances. Bad entries are dropped and fixable ones repaired;
    every such decision is logged, and written to ``log`` (a RunLog) if given.

    Args:
        raw_candidates: Chapter candidates in the order the model listed them
        page_cap: Highest page number accepted for either end of a range
        suspicious_band: Exclusive (low, high) bounds on the first accepted
            chapter's page span that mark it as a misread section-number range; None
            disables the check
        pages_per_chapter: Page estimate used when a range has to be re-derived
        log: Optional RunLog receiving one entry per discard or repair

    Returns:
        The accepted chapters

    Raises:
        ChapterListEmpty: If no candidate survives validation
    """

    def note(message: str) -> None:
        if log is not None:
            log.warning(message)
        else:
            logger.warning(message)

    accepted: list[Chapter] = []

    for candidate in raw_candidates:
        fields = _as_mapping(candidate)
        if fields is None:
            note(f"Skipping invalid chapter: {candidate!r}")
            continue

        raw_title = _first_present(fields, _TITLE_KEYS)
        title = str(raw_title).strip() if raw_title is not None else ""
        start = _coerce_page(_first_present(fields, _START_KEYS))
        end = _coerce_page(_first_present(fields, _END_KEYS))

        if not title or start is None or end is None:
            note(f"Skipping invalid chapter: {_describe(candidate)}")
            continue

        # The model sometimes reports section ranges like "1.1-1.64" as pages 1-64.
        # Only the first accepted chapter is checked, so validated output is a fixed point.
        if suspicious_band is not None and not accepted and start == 1:
            low, high = suspicious_band
            if low < end - start < high:
                repaired_start = 1
                repaired_end = repaired_start + pages_per_chapter - 1
                note(
                    f"Chapter '{title}' has range {start}-{end} which may be section numbers. "
                    f"Adjusting to {repaired_start}-{repaired_end}."
                )
                start, end = repaired_start, repaired_end

        if start < 1 or end < 1 or start > page_cap or end > page_cap:
            note(f"Skipping chapter with invalid page range: {title} ({start}-{end})")
            continue

        if start > end:
            note(f"Skipping chapter with reversed page numbers: {title} ({start}-{end})")
            continue

        if accepted and start <= accepted[-1].end_page:
            previous = accepted[-1]
            shifted_start = previous.end_page + 1
            if shifted_start > page_cap:
                note(
                    f"Skipping chapter '{title}': overlaps with previous chapter "
                    f"'{previous.title}' and no pages are left below the cap of {page_cap}"
                )
                continue
            shifted_end = end if end >= shifted_start else shifted_start + pages_per_chapter - 1
            shifted_end = min(shifted_end, page_cap)
            note(
                f"Chapter '{title}' overlaps with previous chapter '{previous.title}'. "
                f"Adjusting {start}-{end} to {shifted_start}-{shifted_end}."
            )
            start, end = shifted_start, shifted_end

        accepted.append(Chapter(title=title, start_page=start, end_page=end))

    if not accepted:
        raise ChapterListEmpty()

    return accepted
