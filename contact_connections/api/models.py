from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, NamedTuple

from google.oauth2.credentials import Credentials
from pydantic import BaseModel, Field

from contact_connections.api import constants
from contact_connections.api.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


class ClientKey(BaseModel):
    client_id: str = Field(title="The OAuth2 client id")
    client_secret: str = Field(title="The OAuth2 client secret")


class ClientRegistration(BaseModel):
    """The application registration as downloaded from the Google Cloud console."""

    installed: ClientKey | None = None
    web: ClientKey | None = None

    @property
    def key(self) -> ClientKey:
        """Gets the installed-app key, falling back to the web-app key."""
        key = self.installed or self.web
        if key is None:
            msg = "The client registration has neither an 'installed' nor a 'web' key"
            raise ConfigurationError(msg)
        return key


class Credential(BaseModel):
    """The persisted authorization grant, compatible with ``Credentials.from_authorized_user_info``."""

    type: Literal["authorized_user"] = constants.AUTHORIZED_USER
    client_id: str
    client_secret: str
    refresh_token: str | None = None

    @classmethod
    def from_key(cls, key: ClientKey, refresh_token: str | None) -> Credential:
        return cls(client_id=key.client_id, client_secret=key.client_secret, refresh_token=refresh_token)

    def to_credentials(self, scopes: Sequence[str] | None = None) -> Credentials:
        """Builds the google-auth Credentials for this grant."""
        info = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
        }
        return Credentials.from_authorized_user_info(info, list(scopes) if scopes is not None else None)


class ContactSummary(NamedTuple):
    name: str
    phone_numbers: list[str] | str

    def __repr__(self) -> str:
        return self.name

    def as_json(self) -> dict[str, Any]:
        return {"name": self.name, "phoneNumbers": self.phone_numbers}


class Page(NamedTuple):
    items: list[dict[str, Any]]
    next_page_token: str | None
