"""Configuration helpers for the news preview pipeline."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(
        None,
        alias="OPENAI_BASE_URL",
        description="Optional OpenAI-compatible endpoint (e.g. a Groq base URL).",
    )
    summarizer_model: str = Field(
        "gpt-4o-mini", description="Model used for both summarization passes."
    )
    max_tokens: int = Field(
        1200,
        description=(
            "Max tokens for each summary response; raise if long articles are truncating."
        ),
    )
    temperature: float = Field(0.3, description="Generation temperature.")
    llm_timeout_seconds: float = Field(
        30.0, description="Upper bound for a single model call."
    )
    max_prompt_chars: int = Field(
        12000, description="Article text beyond this many characters is not sent."
    )

    fetch_timeout_seconds: float = Field(12.0, ge=10.0, le=15.0)
    fetch_retries: int = Field(2, ge=0, le=2)
    fetch_backoff_seconds: float = Field(
        0.5, description="Base delay for exponential backoff between fetch retries."
    )
    verify_tls: bool = Field(
        False,
        description=(
            "Certificate validation for target sites. Off by default: many news "
            "sites ship broken chains and content availability is preferred over "
            "strict transport trust. Set VERIFY_TLS=true to enforce."
        ),
    )
    user_agent: str = Field(DEFAULT_USER_AGENT)

    short_content_threshold: int = Field(
        500, description="Texts shorter than this skip the model entirely."
    )
    short_summary_chars: int = 200
    condensed_max_ratio: float = 0.30
    condensed_target_ratio: float = 0.25
    fallback_quick_words: int = 80
    fallback_detailed_words: int = 250
    fallback_condensed_words: int = 150

    profile_image_max_square: int = Field(
        200,
        description=(
            "Square images whose URL-embedded size is at or below this edge "
            "length are treated as avatars."
        ),
    )
    linkedin_placeholder_image: str = Field(
        "https://static.licdn.com/aero-v1/sc/h/c45fy346jw096z9pbphyyhdz7"
    )
    twitter_placeholder_image: str = Field(
        "https://abs.twimg.com/responsive-web/client-web/icon-ios.77d25eba.png"
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")


def get_settings() -> Settings:
    """Return settings read from the current environment."""
    return Settings()
