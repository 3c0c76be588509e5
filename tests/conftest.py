from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest

from contact_connections.api import oauth2
from contact_connections.api.settings import Settings

if TYPE_CHECKING:
    from pathlib import Path

REDIRECT_URI = "http://localhost:3000/auth/google/callback"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def registration_file(tmp_path: Path) -> Path:
    path = tmp_path / "credentials.json"
    path.write_text(
        json.dumps(
            {
                "installed": {
                    "client_id": "abc",
                    "client_secret": "xyz",
                    "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                    "token_uri": "https://oauth2.googleapis.com/token",
                    "redirect_uris": ["http://localhost"],
                }
            }
        )
    )
    return path


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    return tmp_path / "token.json"


@pytest.fixture
def store(registration_file: Path, token_file: Path) -> oauth2.CredentialStore:
    return oauth2.CredentialStore(registration_file, token_file)


@pytest.fixture
def settings(registration_file: Path, token_file: Path) -> Settings:
    return Settings(
        _env_file=None,
        google_client_id="web-id",
        google_client_secret="web-secret",
        google_redirect_uri=REDIRECT_URI,
        credentials_file=registration_file,
        token_file=token_file,
    )


def people_resource(pages: list[Any]) -> tuple[MagicMock, MagicMock]:
    """Builds a fake People API resource whose connections().list().execute() yields the pages in order."""
    resource = MagicMock()
    list_request = resource.people.return_value.connections.return_value.list
    list_request.return_value.execute.side_effect = pages
    return resource, list_request
