from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from contact_connections.api import oauth2
from contact_connections.api.exceptions import AuthorizationError, ConfigurationError, CredentialStoreError
from contact_connections.api.settings import OAuthClientSettings
from tests.conftest import REDIRECT_URI

if TYPE_CHECKING:
    from pathlib import Path

WEB_CLIENT = OAuthClientSettings(client_id="web-id", client_secret="web-secret", redirect_uri=REDIRECT_URI)


class TestCredentialStore:
    @pytest.mark.anyio
    async def test_save_writes_authorized_user(self, store: oauth2.CredentialStore, token_file: Path) -> None:
        await store.save("r1")

        assert json.loads(token_file.read_text()) == {
            "type": "authorized_user",
            "client_id": "abc",
            "client_secret": "xyz",
            "refresh_token": "r1",
        }

    @pytest.mark.anyio
    async def test_save_overwrites(self, store: oauth2.CredentialStore, token_file: Path) -> None:
        token_file.write_text(json.dumps({"token": "stale-access-token", "expiry": "2020-01-01T00:00:00Z"}))

        await store.save("r2")

        payload = json.loads(token_file.read_text())
        assert "token" not in payload
        assert "expiry" not in payload
        assert payload["refresh_token"] == "r2"

    @pytest.mark.anyio
    async def test_save_uses_web_key(self, registration_file: Path, store: oauth2.CredentialStore) -> None:
        registration_file.write_text(json.dumps({"web": {"client_id": "w", "client_secret": "s"}}))

        credential = await store.save("r1")

        assert (credential.client_id, credential.client_secret) == ("w", "s")

    @pytest.mark.anyio
    async def test_save_prefers_installed_key(self, registration_file: Path, store: oauth2.CredentialStore) -> None:
        registration_file.write_text(
            json.dumps(
                {
                    "installed": {"client_id": "i", "client_secret": "is"},
                    "web": {"client_id": "w", "client_secret": "ws"},
                }
            )
        )

        credential = await store.save("r1")

        assert credential.client_id == "i"

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "registration",
        [
            json.dumps({"other": {"client_id": "a", "client_secret": "b"}}),
            json.dumps({"installed": {"client_id": "a"}}),
            "not json",
        ],
    )
    async def test_save_rejects_bad_registration(
        self, registration: str, registration_file: Path, store: oauth2.CredentialStore, token_file: Path
    ) -> None:
        registration_file.write_text(registration)

        with pytest.raises(ConfigurationError):
            await store.save("r1")

        assert not token_file.exists()

    @pytest.mark.anyio
    async def test_save_missing_registration(self, tmp_path: Path, token_file: Path) -> None:
        store = oauth2.CredentialStore(tmp_path / "missing.json", token_file)

        with pytest.raises(ConfigurationError):
            await store.save("r1")

    @pytest.mark.anyio
    async def test_save_unwritable_token_file(self, tmp_path: Path, registration_file: Path) -> None:
        store = oauth2.CredentialStore(registration_file, tmp_path)

        with pytest.raises(CredentialStoreError) as exc_info:
            await store.save("r1")

        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.anyio
    async def test_round_trip(self, store: oauth2.CredentialStore) -> None:
        await store.save("r1")

        credential = await store.load()

        assert credential is not None
        creds = credential.to_credentials()
        assert creds.client_id == "abc"
        assert creds.client_secret == "xyz"
        assert creds.refresh_token == "r1"
        assert creds.token is None

    @pytest.mark.anyio
    async def test_load_missing(self, store: oauth2.CredentialStore) -> None:
        assert await store.load() is None

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "content",
        [
            b"",
            b"{not json",
            b"[1, 2, 3]",
            b'{"type": "authorized_user"}',
            b'{"type": "service_account", "client_id": "a", "client_secret": "b", "refresh_token": "c"}',
            b"\xff\xfe\x00",
        ],
    )
    async def test_load_fails_soft(self, content: bytes, store: oauth2.CredentialStore, token_file: Path) -> None:
        token_file.write_bytes(content)

        assert await store.load() is None

    @pytest.mark.anyio
    async def test_load_directory(self, tmp_path: Path, registration_file: Path) -> None:
        store = oauth2.CredentialStore(registration_file, tmp_path)

        assert await store.load() is None

    @pytest.mark.anyio
    async def test_saved_without_refresh_token_loads_absent(
        self, store: oauth2.CredentialStore, token_file: Path
    ) -> None:
        await store.save(None)

        assert json.loads(token_file.read_text())["refresh_token"] is None
        assert await store.load() is None


class TestAuthorizationFlow:
    @pytest.mark.anyio
    async def test_authorize_uses_saved_credential(self, store: oauth2.CredentialStore) -> None:
        await store.save("r1")
        flow = oauth2.AuthorizationFlow(store)

        with patch.object(oauth2, "InstalledAppFlow") as installed_app_flow:
            creds = await flow.authorize()

        installed_app_flow.from_client_secrets_file.assert_not_called()
        assert creds.refresh_token == "r1"
        assert creds.scopes == ["https://www.googleapis.com/auth/contacts.readonly"]

    @pytest.mark.anyio
    async def test_authorize_runs_installed_app_flow(
        self, store: oauth2.CredentialStore, registration_file: Path, token_file: Path
    ) -> None:
        flow = oauth2.AuthorizationFlow(store)
        new_creds = MagicMock(refresh_token="r2")

        with patch.object(oauth2, "InstalledAppFlow") as installed_app_flow:
            installed_app_flow.from_client_secrets_file.return_value.run_local_server.return_value = new_creds
            creds = await flow.authorize()

        assert creds is new_creds
        installed_app_flow.from_client_secrets_file.assert_called_once_with(
            str(registration_file), ["https://www.googleapis.com/auth/contacts.readonly"]
        )
        installed_app_flow.from_client_secrets_file.return_value.run_local_server.assert_called_once_with(port=0)
        assert json.loads(token_file.read_text())["refresh_token"] == "r2"

    @pytest.mark.anyio
    async def test_authorize_without_result_saves_nothing(
        self, store: oauth2.CredentialStore, token_file: Path
    ) -> None:
        flow = oauth2.AuthorizationFlow(store)

        with patch.object(oauth2, "InstalledAppFlow") as installed_app_flow:
            installed_app_flow.from_client_secrets_file.return_value.run_local_server.return_value = None
            creds = await flow.authorize()

        assert creds is None
        assert not token_file.exists()

    def test_authorization_url(self, store: oauth2.CredentialStore) -> None:
        url = oauth2.AuthorizationFlow(store, WEB_CLIENT).authorization_url()

        assert url.startswith("https://accounts.google.com/o/oauth2/auth?")
        assert "access_type=offline" in url
        assert "client_id=web-id" in url
        assert "contacts.readonly" in url
        assert "code_challenge" not in url

    def test_authorization_url_requires_web_client(self, store: oauth2.CredentialStore) -> None:
        with pytest.raises(ConfigurationError):
            oauth2.AuthorizationFlow(store).authorization_url()

    @pytest.mark.anyio
    async def test_exchange_code(self, store: oauth2.CredentialStore, token_file: Path) -> None:
        flow = oauth2.AuthorizationFlow(store, WEB_CLIENT)

        with patch.object(oauth2, "Flow") as web_flow:
            web_flow.from_client_config.return_value.credentials = MagicMock(token="at1", refresh_token="r1")
            creds = await flow.exchange_code("c1")

        web_flow.from_client_config.return_value.fetch_token.assert_called_once_with(code="c1")
        assert creds.token == "at1"
        assert json.loads(token_file.read_text()) == {
            "type": "authorized_user",
            "client_id": "abc",
            "client_secret": "xyz",
            "refresh_token": "r1",
        }

    @pytest.mark.anyio
    async def test_exchange_code_failure(self, store: oauth2.CredentialStore, token_file: Path) -> None:
        flow = oauth2.AuthorizationFlow(store, WEB_CLIENT)

        with patch.object(oauth2, "Flow") as web_flow:
            web_flow.from_client_config.return_value.fetch_token.side_effect = ValueError("invalid_grant")
            with pytest.raises(AuthorizationError, match="invalid_grant"):
                await flow.exchange_code("expired")

        assert not token_file.exists()
