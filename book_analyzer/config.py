"""Run configuration loaded from CLI overrides and environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace

from book_analyzer.errors import ConfigurationError


INPUT_MODES = ("text", "pdf")
OUTPUT_FORMATS = ("markdown", "questions")
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one analyzer run."""

    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4.1-mini"
    max_retries: int = 2
    timeout: float = 120.0
    input_mode: str = "text"
    output_format: str = "markdown"
    toc_pages: int = 20
    page_cap: int = 5000
    question_pdf: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.input_mode not in INPUT_MODES:
            raise ConfigurationError(
                f"Unknown input mode {self.input_mode!r}, expected one of {', '.join(INPUT_MODES)}"
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format {self.output_format!r}, expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        if self.toc_pages < 1:
            raise ConfigurationError("toc_pages must be at least 1")
        if self.page_cap < 1:
            raise ConfigurationError("page_cap must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")

    @classmethod
    def from_env(cls, **overrides) -> PipelineConfig:
        """
        Build a config from environment variables (and any loaded .env file).

        Keyword overrides that are None are ignored, so CLI flags that were not
        given fall through to the environment.
        """
        env = os.environ
        try:
            config = cls(
                api_key=env.get("OPENAI_API_KEY") or None,
                base_url=env.get("OPENAI_URL", cls.base_url),
                model=env.get("OPENAI_MODEL", cls.model),
                max_retries=int(env.get("OPENAI_MAX_RETRIES", cls.max_retries)),
                timeout=float(env.get("OPENAI_TIMEOUT", cls.timeout)),
                input_mode=env.get("BOOK_ANALYZER_INPUT_MODE", cls.input_mode),
                output_format=env.get("BOOK_ANALYZER_OUTPUT_FORMAT", cls.output_format),
                toc_pages=int(env.get("BOOK_ANALYZER_TOC_PAGES", cls.toc_pages)),
                page_cap=int(env.get("BOOK_ANALYZER_PAGE_CAP", cls.page_cap)),
                question_pdf=env.get("BOOK_ANALYZER_QUESTION_PDF", "").strip().lower() in _TRUE_VALUES,
                log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}") from e

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        given = {key: value for key, value in overrides.items() if value is not None}
        return replace(config, **given) if given else config

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "API key required. Use --api-key or set OPENAI_API_KEY in .env file"
            )
        return self.api_key
