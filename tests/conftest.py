"""
Shared fixtures.

Nothing here talks to AWS. Tests either use the in-memory storage client
or moto's mock_aws for the boto3-backed client.
"""

import os
from datetime import datetime, timezone

import pytest

from payload_uploader import service
from payload_uploader.config.settings import Settings, get_settings
from payload_uploader.infrastructure.storage.client import MockStorageClient

FIXED_TIME = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
SUCCESS_MESSAGE = "File successfully uploaded to S3."


@pytest.fixture
def fixed_clock():
    """A clock that always reports the same second."""
    return lambda: FIXED_TIME


@pytest.fixture
def mock_storage():
    return MockStorageClient()


@pytest.fixture
def settings():
    """Default settings with mock storage, isolated from any .env file."""
    return Settings(storage_mock_mode=True, _env_file=None)


@pytest.fixture
def clean_settings_cache(monkeypatch):
    """
    Reset cached settings and the shared mock client around a test.

    Tests that go through get_settings() use this and set env vars with
    monkeypatch before calling the code under test.
    """
    monkeypatch.chdir(os.path.dirname(__file__))
    get_settings.cache_clear()
    service.reset_mock_storage()
    yield
    get_settings.cache_clear()
    service.reset_mock_storage()


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-south-1")
