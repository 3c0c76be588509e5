from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from contact_connections.api import constants
from contact_connections.api.settings.oauth import OAuthClientSettings


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    port: int = Field(3000, title="The listening port")
    log_level: str = Field("INFO", title="The lowest log level to display")

    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None

    credentials_file: Path = Field(constants.DEFAULT_CREDENTIALS_FILE, title="The application registration file")
    token_file: Path = Field(constants.DEFAULT_TOKEN_FILE, title="The persisted credential file")
    token_cookie: str = Field("token", title="The cookie holding the session access token")

    @property
    def oauth_client(self) -> OAuthClientSettings | None:
        """Gets the web OAuth2 client built from the GOOGLE_* environment, if fully configured."""
        if not (self.google_client_id and self.google_client_secret and self.google_redirect_uri):
            return None

        return OAuthClientSettings(
            client_id=self.google_client_id,
            client_secret=self.google_client_secret,
            redirect_uri=self.google_redirect_uri,
        )


@cache
def get_settings() -> Settings:
    return Settings()
