from __future__ import annotations

from http import HTTPStatus
from typing import Final

import flask
import structlog
from google.oauth2.credentials import Credentials

from contact_connections.api import logging, oauth2, services
from contact_connections.api.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConnectionsFetchError,
    CredentialStoreError,
)
from contact_connections.api.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

AUTHENTICATION_FAILED: Final[str] = "Authentication failed"
NO_ACCESS_TOKEN: Final[str] = "No access token found. Please login again."  # noqa: S105
NO_CONNECTIONS: Final[str] = "No connections found."
FETCH_FAILED: Final[str] = "Error fetching connections"


def _text(body: str, status: HTTPStatus = HTTPStatus.OK) -> flask.Response:
    return flask.make_response(body, status, {"Content-Type": "text/plain; charset=utf-8"})


def create_app(settings: Settings | None = None) -> flask.Flask:
    """
    Builds the Flask application.

    Args:
        settings (Settings | None): The configuration (defaults to the process-wide settings).
    Returns:
        The flask.Flask application exposing the login, callback and connections routes.
    """
    settings = settings or get_settings()
    store = oauth2.CredentialStore(settings.credentials_file, settings.token_file)
    flow = oauth2.AuthorizationFlow(store, settings.oauth_client)

    app = flask.Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]

    @app.errorhandler(ConfigurationError)
    def configuration_error(e: ConfigurationError) -> flask.Response:
        logger.error("Misconfigured", error=str(e))
        return _text(HTTPStatus.INTERNAL_SERVER_ERROR.phrase, HTTPStatus.INTERNAL_SERVER_ERROR)

    @app.get("/")
    def login() -> flask.Response:
        return flask.redirect(flow.authorization_url())

    @app.get("/auth/google/callback")
    async def callback() -> flask.Response:
        code = flask.request.args.get("code")
        if not code:
            logger.warning("Callback without an authorization code", error=flask.request.args.get("error"))
            return _text(AUTHENTICATION_FAILED, HTTPStatus.INTERNAL_SERVER_ERROR)

        try:
            creds = await flow.exchange_code(code)
        except (AuthorizationError, ConfigurationError, CredentialStoreError) as e:
            logger.error(AUTHENTICATION_FAILED, error=str(e), cause=repr(e.__cause__))
            return _text(AUTHENTICATION_FAILED, HTTPStatus.INTERNAL_SERVER_ERROR)

        response = flask.redirect(flask.url_for("connections"))
        response.set_cookie(settings.token_cookie, creds.token or "")
        return response

    @app.get("/connections")
    async def connections() -> flask.Response:
        token = flask.request.cookies.get(settings.token_cookie)
        if not token:
            return _text(NO_ACCESS_TOKEN, HTTPStatus.UNAUTHORIZED)

        try:
            summaries = await services.Connections(Credentials(token=token)).list_all()
        except ConnectionsFetchError as e:
            logger.error(FETCH_FAILED, status=e.status, payload=e.payload)
            return _text(FETCH_FAILED, HTTPStatus.INTERNAL_SERVER_ERROR)

        if not summaries:
            return _text(NO_CONNECTIONS)

        logger.info("Listed connections", length=len(summaries))
        return flask.jsonify([summary.as_json() for summary in summaries])

    return app


def serve() -> flask.Flask:
    """The gunicorn entry point."""
    settings = get_settings()
    logging.configure(level=settings.log_level, renderer=logging.LogRenderer.JSON)
    return create_app(settings)
