import os
import sys
import tempfile

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Keep the app's startup store out of the working directory
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/startup.db")

import pytest
from fastapi.testclient import TestClient

from core.store import reset_store
from main import app


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def store(tmp_path):
    """Fresh SQLite object store for every test."""
    s = reset_store(f"sqlite:///{tmp_path / 'store.db'}")
    yield s
    s.dispose()


CSV_EVENTS = (
    b"userId,eventName,timestamp,revenue\n"
    b"u1,level_start,2024-01-01T10:00:00,0\n"
    b"u2,purchase,2024-01-01T11:00:00,4.99\n"
)


@pytest.fixture
def events_csv():
    return CSV_EVENTS
