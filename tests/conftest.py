"""Shared test configuration.

Settings are cached and the database engine is created at import time, so the
environment has to be prepared before anything under ``matrisync`` is imported.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "matrisync_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["PROFILE_BATCH_WINDOW_MS"] = "0"
os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
