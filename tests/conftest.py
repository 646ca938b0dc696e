"""
Shared fixtures
The configuration file is redirected to a temporary directory before any
ideatrium module is imported, so tests never touch the user's config.
"""

import os
import tempfile
from pathlib import Path

_CONFIG_DIR = Path(tempfile.mkdtemp(prefix="ideatrium-tests-"))
os.environ["IDEATRIUM_CONFIG"] = str(_CONFIG_DIR / "config.toml")
os.environ["GEMINI_API_KEY"] = ""

import pytest  # noqa: E402

from ideatrium.core.db import DatabaseManager  # noqa: E402
from ideatrium.core.events import ChangeNotifier  # noqa: E402
from ideatrium.core.local_store import LocalStore  # noqa: E402
from ideatrium.core.records import RecordManager, UserSession  # noqa: E402

USER_ID = "user-1"


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def db_store(tmp_path, notifier):
    return DatabaseManager(str(tmp_path / "ideatrium.db"), notifier=notifier)


@pytest.fixture
def local_store(tmp_path, notifier):
    return LocalStore(str(tmp_path / "local_storage.json"), notifier=notifier)


@pytest.fixture(params=["database", "local"])
def store(request, db_store, local_store):
    return db_store if request.param == "database" else local_store


@pytest.fixture
def records(store, notifier):
    manager = RecordManager(store, UserSession(USER_ID), notifier)
    manager.ensure_account("Tester")
    return manager
