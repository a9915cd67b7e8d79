import pytest

from book_analyzer.config import PipelineConfig
from book_analyzer.errors import ConfigurationError


def test_defaults_without_environment(clean_env):
    config = PipelineConfig.from_env()

    assert config.api_key is None
    assert config.base_url == "https://api.openai.com/v1"
    assert config.toc_pages == 20
    assert config.page_cap == 5000
    assert config.output_format == "markdown"
    assert config.question_pdf is False


def test_environment_values_are_read(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-env")
    clean_env.setenv("OPENAI_URL", "https://api.z.ai/api/paas/v4")
    clean_env.setenv("OPENAI_MAX_RETRIES", "0")
    clean_env.setenv("BOOK_ANALYZER_OUTPUT_FORMAT", "questions")
    clean_env.setenv("BOOK_ANALYZER_QUESTION_PDF", "yes")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = PipelineConfig.from_env()

    assert config.require_api_key() == "sk-env"
    assert config.base_url == "https://api.z.ai/api/paas/v4"
    assert config.max_retries == 0
    assert config.output_format == "questions"
    assert config.question_pdf is True
    assert config.log_level == "DEBUG"


def test_overrides_win_and_none_falls_through(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-env")
    clean_env.setenv("OPENAI_MODEL", "glm-4.7")

    config = PipelineConfig.from_env(api_key="sk-flag", model=None, input_mode="pdf")

    assert config.api_key == "sk-flag"
    assert config.model == "glm-4.7"
    assert config.input_mode == "pdf"


def test_invalid_values_raise(clean_env):
    with pytest.raises(ConfigurationError):
        PipelineConfig.from_env(output_format="pdf")

    clean_env.setenv("BOOK_ANALYZER_TOC_PAGES", "twenty")
    with pytest.raises(ConfigurationError):
        PipelineConfig.from_env()


def test_unknown_override_raises(clean_env):
    with pytest.raises(ConfigurationError):
        PipelineConfig.from_env(temperature=0.3)


def test_missing_api_key_is_reported():
    with pytest.raises(ConfigurationError, match="API key required"):
        PipelineConfig(api_key=None).require_api_key()
