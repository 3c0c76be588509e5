from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Final

import anyio
import anyio.to_thread
import structlog
from google_auth_oauthlib.flow import Flow, InstalledAppFlow
from pydantic import ValidationError

from contact_connections.api import constants, models
from contact_connections.api.exceptions import AuthorizationError, ConfigurationError, CredentialStoreError

if TYPE_CHECKING:
    import os
    from collections.abc import Sequence

    from google.oauth2.credentials import Credentials

    from contact_connections.api.settings import OAuthClientSettings

logger = structlog.get_logger(__name__)

EPHEMERAL_PORT: Final[int] = 0


class CredentialStore:
    """
    Persists the authorization grant next to the application registration.

    The token file always holds a single ``authorized_user`` record; every save replaces it.
    """

    def __init__(self, credentials_file: os.PathLike | str, token_file: os.PathLike | str) -> None:
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)

    async def load(self) -> models.Credential | None:
        """Reads the saved credential, or None when there is nothing usable on disk."""
        try:
            content = await anyio.Path(self.token_file).read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("No saved credential", file=str(self.token_file), reason=str(e))
            return None

        try:
            credential = models.Credential.model_validate_json(content)
        except ValidationError:
            logger.warning("Ignoring unparsable credential", file=str(self.token_file))
            return None

        if not credential.refresh_token:
            logger.warning("Ignoring credential without a refresh token", file=str(self.token_file))
            return None

        return credential

    async def save(self, refresh_token: str | None) -> models.Credential:
        """Overwrites the saved credential with the registration key and the refresh token."""
        registration = await self.load_registration()
        credential = models.Credential.from_key(registration.key, refresh_token)
        if refresh_token is None:
            logger.warning("Saving credential without a refresh token", file=str(self.token_file))

        try:
            await anyio.Path(self.token_file).write_text(credential.model_dump_json())
        except OSError as e:
            msg = f"Unable to write the credential to {self.token_file}"
            raise CredentialStoreError(msg) from e

        logger.info("Saved credential", file=str(self.token_file))
        return credential

    async def load_registration(self) -> models.ClientRegistration:
        try:
            content = await anyio.Path(self.credentials_file).read_text()
            return models.ClientRegistration.model_validate_json(content)
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            msg = f"Unable to read the client registration {self.credentials_file}"
            raise ConfigurationError(msg) from e


class AuthorizationFlow:
    """
    Obtains Google credentials for the contacts read-only scope.

    ``authorize`` is the interactive (installed app) path used from the command line;
    ``authorization_url`` and ``exchange_code`` are the two halves of the web redirect flow.
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth_client: OAuthClientSettings | None = None,
        scopes: Sequence[str] = constants.SCOPES,
    ) -> None:
        self.store = store
        self.oauth_client = oauth_client
        self.scopes = list(scopes)

    async def authorize(self) -> Credentials:
        credential = await self.store.load()
        if credential is not None:
            logger.debug("Authenticating", file=str(self.store.token_file))
            return credential.to_credentials(self.scopes)

        logger.info("No saved credential, starting the installed app flow")
        try:
            flow = InstalledAppFlow.from_client_secrets_file(str(self.store.credentials_file), self.scopes)
        except (OSError, ValueError) as e:
            msg = f"Unable to read the client registration {self.store.credentials_file}"
            raise ConfigurationError(msg) from e

        creds = await anyio.to_thread.run_sync(partial(flow.run_local_server, port=EPHEMERAL_PORT))
        if creds:
            await self.store.save(creds.refresh_token)
        return creds

    def authorization_url(self) -> str:
        """Builds the offline-access consent URL the browser is sent to."""
        url, _ = self._web_flow().authorization_url(access_type=constants.ACCESS_TYPE)
        return url

    async def exchange_code(self, code: str) -> Credentials:
        """Exchanges the one-time code for tokens and persists the refresh token."""
        flow = self._web_flow()
        try:
            await anyio.to_thread.run_sync(partial(flow.fetch_token, code=code))
        except Exception as e:
            msg = f"Failed to exchange code: {e}"
            raise AuthorizationError(msg) from e

        creds = flow.credentials
        logger.info("Exchanged code", has_refresh_token=bool(creds.refresh_token))
        await self.store.save(creds.refresh_token)
        return creds

    def _web_flow(self) -> Flow:
        # One flow per call; OAuth session state never outlives a request.
        if self.oauth_client is None:
            msg = "GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REDIRECT_URI must be set"
            raise ConfigurationError(msg)

        return Flow.from_client_config(
            self.oauth_client.client_config(),
            scopes=self.scopes,
            redirect_uri=self.oauth_client.redirect_uri,
            autogenerate_code_verifier=False,
        )
