from __future__ import annotations

from typing import Any


class ConfigurationError(Exception):
    """The application registration (client secrets) file is missing or unusable."""


class AuthorizationError(Exception):
    """The OAuth2 authorization code could not be exchanged for tokens."""


class ConnectionsFetchError(Exception):
    """A page of connections could not be fetched from the People API."""

    def __init__(self, message: str, payload: Any = None, status: int | None = None) -> None:  # noqa: ANN401
        super().__init__(message)
        self.payload = payload
        self.status = status


class CredentialStoreError(Exception):
    """The credential could not be written to the token file."""
