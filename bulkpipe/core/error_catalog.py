"""Error Catalog - registry mapping integer error codes to locale message bundles.

Invariants:
    - A code, once registered, is immutable and unique; re-registration is fatal
    - Every bundle carries the default locale ("en"), so resolve() can always fall back
    - Unknown codes are a defect: resolve() raises, it never returns ""
    - After freeze() the catalog is read-only; registering is a configuration defect

Design Decisions:
    - Explicit ErrorCatalog instances injected into the pipeline; get_catalog() is only
      the process-wide default (same lru_cache pattern as config.get_settings)
    - Bundles stored as read-only copies (MappingProxyType): callers cannot edit an
      entry through the dict they registered
    - No locking: registration completes during startup, before any batch runs
"""

import logging
from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

from bulkpipe.core.domain_types import DEFAULT_LOCALE, ErrorCode, Locale
from bulkpipe.core.errors import (
    CatalogFrozenError,
    DuplicateErrorCodeError,
    InvalidMessageBundleError,
    UnknownErrorCodeError,
)

logger = logging.getLogger(__name__)

MessageBundle = Mapping[str, str]


_BUILTIN_MESSAGES: dict[int, dict[str, str]] = {
    ErrorCode.INTERNAL_SERVER_ERROR: {
        Locale.EN: (
            "Internal server error occurred. Please wait until it has been "
            "fixed, before you try again"
        ),
        Locale.DEV: (
            "Internal server error occurred. Please wait until it has been "
            "fixed, before you try again"
        ),
    },
    ErrorCode.EMPTY_REQUEST_NOT_ALLOWED: {
        Locale.EN: "Empty request not allowed",
        Locale.DEV: (
            "This endpoint does not allow the empty request - each request "
            "must be defined separately"
        ),
    },
    ErrorCode.MAX_REQUESTS_EXCEEDED: {
        Locale.EN: "Max number of requests exceeded",
        Locale.DEV: (
            "max_batch_size is set for this pipeline and is exceeded by the "
            "number of request objects given in the input"
        ),
    },
    ErrorCode.OPERATION_ABORTED: {
        Locale.EN: "Operation aborted due to other errors",
        Locale.DEV: "Operation aborted due to other errors",
    },
    ErrorCode.INPUT_VALIDATION_FAILED: {
        Locale.EN: "Input validation failed",
        Locale.DEV: "Structural validation failed on fields of the input",
    },
}


class ErrorCatalog:
    """Code -> {locale -> message}. Populate at startup, freeze, then read only."""

    def __init__(self) -> None:
        self._entries: dict[int, MappingProxyType] = {}
        self._frozen = False

    @classmethod
    def with_builtins(cls) -> "ErrorCatalog":
        """Fresh catalog holding the reserved built-in codes."""
        catalog = cls()
        catalog.register_all(_BUILTIN_MESSAGES)
        return catalog

    # ─── Registration ────────────────────────────────────────

    def register(self, code: int, bundle: MessageBundle) -> None:
        """Add one entry. Fatal on duplicates, bad bundles, or a frozen catalog."""
        code = int(code)
        if self._frozen:
            raise CatalogFrozenError(code)
        if code in self._entries:
            raise DuplicateErrorCodeError(code)
        if not bundle:
            raise InvalidMessageBundleError(code, "bundle is empty")

        messages = {_locale_key(locale): text for locale, text in bundle.items()}
        if DEFAULT_LOCALE not in messages:
            raise InvalidMessageBundleError(
                code, f"missing default locale '{DEFAULT_LOCALE}'",
            )
        for locale, text in messages.items():
            if not isinstance(text, str) or not text:
                raise InvalidMessageBundleError(
                    code, f"message for locale '{locale}' must be a non-empty string",
                )

        self._entries[code] = MappingProxyType(messages)
        logger.debug(
            f"Registered error code {code} ({len(messages)} locales)",
            extra={"error_code": code},
        )

    def register_all(self, entries: Mapping[int, MessageBundle]) -> None:
        """Bulk register; stops at the first fatal entry."""
        for code, bundle in entries.items():
            self.register(code, bundle)

    def freeze(self) -> None:
        """End the registration phase. Idempotent."""
        if not self._frozen:
            logger.debug(f"Error catalog frozen with {len(self._entries)} codes")
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ─── Lookup ──────────────────────────────────────────────

    def resolve(self, code: int, locale: str = DEFAULT_LOCALE) -> str:
        """Message for `code` in `locale`, falling back to the default locale."""
        messages = self._entries.get(int(code))
        if messages is None:
            raise UnknownErrorCodeError(int(code))
        return messages.get(_locale_key(locale), messages[DEFAULT_LOCALE])

    def bundle(self, code: int) -> Mapping[str, str]:
        messages = self._entries.get(int(code))
        if messages is None:
            raise UnknownErrorCodeError(int(code))
        return messages

    def codes(self) -> list[int]:
        return sorted(self._entries)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, int) and code in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _locale_key(locale: str | Locale) -> str:
    return locale.value if isinstance(locale, Locale) else str(locale)


@lru_cache
def get_catalog() -> ErrorCatalog:
    """Process-wide catalog with the built-ins loaded."""
    return ErrorCatalog.with_builtins()
