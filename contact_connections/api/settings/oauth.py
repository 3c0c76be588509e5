from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OAuthClientSettings(BaseModel):
    client_id: str = Field(title="The web application OAuth2 client id")
    client_secret: str = Field(title="The web application OAuth2 client secret")
    redirect_uri: str = Field(title="The URI Google redirects to after consent")
    auth_uri: str = Field("https://accounts.google.com/o/oauth2/auth", title="The authorization endpoint")
    token_uri: str = Field("https://oauth2.googleapis.com/token", title="The token endpoint")  # noqa: S105

    def client_config(self) -> dict[str, Any]:
        """Gets the client configuration in the shape of a web-app client secrets file."""
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [self.redirect_uri],
            }
        }
