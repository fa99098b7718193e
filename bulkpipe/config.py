"""Pipeline Configuration - environment-driven defaults via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): single instance per process
    - BatchOptions and StatusCodes are frozen; a run never sees its options change
    - max_batch_size >= 0, where 0 means unlimited

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Per-call options (BatchOptions) separate from process settings: callers pass
      options explicitly, Settings only supplies the defaults
    - Numeric statuses are configuration owned by the consuming transport layer
"""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bulkpipe.core.domain_types import DEFAULT_LOCALE, OutcomeStatus


class Settings(BaseSettings):
    """Process-wide settings from environment variables (prefix BULKPIPE_)."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="BULKPIPE_", case_sensitive=False,
        extra="ignore",
    )

    # Batch defaults
    allow_empty_batch: bool = False
    skip_input_validation: bool = False
    skip_output_validation: bool = False
    max_batch_size: int = Field(0, ge=0)
    debug_trace: bool = False
    default_locale: str = DEFAULT_LOCALE

    # Outcome status numbers
    status_ok: int = 200
    status_bad_request: int = 400
    status_not_found: int = 404
    status_internal_error: int = 500
    status_service_unavailable: int = 503

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


class StatusCodes(BaseModel):
    """Maps each OutcomeStatus to the number written into Response.status."""

    model_config = ConfigDict(frozen=True)

    ok: int = Field(200, gt=0)
    bad_request: int = Field(400, gt=0)
    not_found: int = Field(404, gt=0)
    internal_error: int = Field(500, gt=0)
    service_unavailable: int = Field(503, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StatusCodes":
        return cls(
            ok=settings.status_ok,
            bad_request=settings.status_bad_request,
            not_found=settings.status_not_found,
            internal_error=settings.status_internal_error,
            service_unavailable=settings.status_service_unavailable,
        )

    def for_outcome(self, outcome: OutcomeStatus) -> int:
        return getattr(self, outcome.value)

    def outcome_of(self, status: int) -> OutcomeStatus | None:
        """Reverse lookup; None for statuses this mapping does not know."""
        for outcome in OutcomeStatus:
            if self.for_outcome(outcome) == status:
                return outcome
        return None


class BatchOptions(BaseModel):
    """Per-call pipeline options."""

    model_config = ConfigDict(frozen=True)

    allow_empty_batch: bool = False
    skip_input_validation: bool = False
    skip_output_validation: bool = False
    max_batch_size: int = Field(0, ge=0)
    debug_trace: bool = False
    locale: str = DEFAULT_LOCALE

    @classmethod
    def from_settings(cls, settings: Settings) -> "BatchOptions":
        return cls(
            allow_empty_batch=settings.allow_empty_batch,
            skip_input_validation=settings.skip_input_validation,
            skip_output_validation=settings.skip_output_validation,
            max_batch_size=settings.max_batch_size,
            debug_trace=settings.debug_trace,
            locale=settings.default_locale,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
