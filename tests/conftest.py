"""Root conftest - shared test configuration.

Invariants:
    - No BULKPIPE_* variable from the developer's shell leaks into a test
    - get_settings() cache is cleared around every test
    - Tests that need a catalog get a fresh one; the process-wide catalog is never
      registered into
"""

import os

import pytest

from bulkpipe.config import get_settings
from bulkpipe.core.error_catalog import ErrorCatalog
from bulkpipe.core.responses import ResponseBuilder

for _key in [k for k in os.environ if k.upper().startswith("BULKPIPE_")]:
    del os.environ[_key]


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog() -> ErrorCatalog:
    return ErrorCatalog.with_builtins()


@pytest.fixture
def builder(catalog) -> ResponseBuilder:
    return ResponseBuilder(catalog)
