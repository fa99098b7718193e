"""Pipeline Configuration - tests for Settings, StatusCodes and BatchOptions.

Tests cover:
    - Defaults and BULKPIPE_ environment overrides
    - Invalid values rejected (negative limit, unknown log format)
    - StatusCodes forward and reverse mapping
    - BatchOptions built from settings and frozen
"""

import pytest
from pydantic import ValidationError

from bulkpipe.config import BatchOptions, Settings, StatusCodes, get_settings
from bulkpipe.core.domain_types import OutcomeStatus


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.max_batch_size == 0
    assert not settings.allow_empty_batch
    assert settings.status_not_found == 404
    assert settings.log_format == "json"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("BULKPIPE_ALLOW_EMPTY_BATCH", "true")
    monkeypatch.setenv("BULKPIPE_MAX_BATCH_SIZE", "50")
    monkeypatch.setenv("BULKPIPE_LOG_FORMAT", "TEXT")
    settings = get_settings()
    assert settings.allow_empty_batch
    assert settings.max_batch_size == 50
    assert settings.log_format == "text"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_negative_batch_size_rejected(monkeypatch):
    monkeypatch.setenv("BULKPIPE_MAX_BATCH_SIZE", "-1")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_unknown_log_format_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_format="xml")


@pytest.mark.parametrize(
    "outcome, status",
    [
        (OutcomeStatus.OK, 200),
        (OutcomeStatus.BAD_REQUEST, 400),
        (OutcomeStatus.NOT_FOUND, 404),
        (OutcomeStatus.INTERNAL_ERROR, 500),
        (OutcomeStatus.SERVICE_UNAVAILABLE, 503),
    ],
)
def test_status_codes_round_trip(outcome, status):
    statuses = StatusCodes()
    assert statuses.for_outcome(outcome) == status
    assert statuses.outcome_of(status) == outcome


def test_unknown_status_has_no_outcome():
    assert StatusCodes().outcome_of(418) is None


def test_status_codes_must_be_positive():
    with pytest.raises(ValidationError):
        StatusCodes(ok=0)


def test_status_codes_from_settings():
    statuses = StatusCodes.from_settings(Settings(_env_file=None, status_internal_error=599))
    assert statuses.internal_error == 599


def test_batch_options_from_settings():
    settings = Settings(_env_file=None, debug_trace=True, default_locale="dev")
    options = BatchOptions.from_settings(settings)
    assert options.debug_trace
    assert options.locale == "dev"


def test_batch_options_are_frozen():
    options = BatchOptions()
    with pytest.raises(ValidationError):
        options.max_batch_size = 10
