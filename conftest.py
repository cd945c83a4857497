# conftest.py

import os

import pytest

# Set testing environment BEFORE importing app so app.py loads TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from drillops.models import db  # noqa: E402


@pytest.fixture(scope="function")
def app(tmp_path):
    """Create and configure a test Flask application with fresh tables"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "INGEST_ENABLED": True,
            "INGEST_WORKER_ENABLED": False,
            "INGEST_STAGING_CHUNK_SIZE": 50,
            "INGEST_SAMPLE_ERROR_LIMIT": 10,
            "INGEST_UPLOAD_SAMPLE_ERROR_LIMIT": 5,
            "INGEST_MAX_UPLOAD_MB": 25,
            "INGEST_UPLOAD_DIR": str(tmp_path / "uploads"),
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
        }
    )

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test runner for the Flask application's CLI commands"""
    return app.test_cli_runner()
