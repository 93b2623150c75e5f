"""
Pytest configuration and shared test helpers for backend tests.
"""
import os
import sys
from pathlib import Path

# Skip heavy server startup (MongoDB, scheduler) when running under pytest.
os.environ.setdefault("PYTEST_RUNNING", "1")

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

import pytest

# Shared TestClient fixture so tests can use in-process requests without a running server.
from fastapi.testclient import TestClient
from server import app
from auth import create_access_token


@pytest.fixture
def client():
    """Return a TestClient for the main FastAPI app (server:app). Use for unit-style API tests."""
    return TestClient(app)


@pytest.fixture
def admin_headers():
    token = create_access_token({"user_id": "admin-1", "role": "ROLE_ADMIN", "email": "admin@tfcmediagroup.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_headers():
    token = create_access_token({"user_id": "user-1", "role": "ROLE_CLIENT", "email": "jane@example.com"})
    return {"Authorization": f"Bearer {token}"}
