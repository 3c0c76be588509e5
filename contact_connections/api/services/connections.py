from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any, Final, cast

import anyio.to_thread
import structlog
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from contact_connections.api import constants, models
from contact_connections.api.exceptions import ConnectionsFetchError

if TYPE_CHECKING:
    from google.auth.credentials import Credentials

logger = structlog.get_logger(__name__)


def summarize(person: dict[str, Any]) -> models.ContactSummary:
    """Projects a People API person onto its display name and phone numbers."""
    names = person.get("names") or []
    name = names[0].get("displayName") if names else None

    # Entries without a value are skipped, not listed as null.
    phone_numbers = [number["value"] for number in person.get("phoneNumbers") or [] if "value" in number]

    return models.ContactSummary(
        name or constants.NO_DISPLAY_NAME,
        phone_numbers or constants.NO_PHONE_NUMBERS,
    )


class Connections:
    """
    Lists every connection of the authenticated user.

    Example usage:
    >> connections = Connections(credentials)
    >> await connections.list_all()
    [Ada, No display name]
    """

    SELECT_KEY: Final[str] = "connections"

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials

    async def list_all(self) -> list[models.ContactSummary]:
        """Fetches all pages, then projects each person onto a ContactSummary."""
        people = await self.get_people()
        return [summarize(person) for person in people]

    async def get_people(self) -> list[dict[str, Any]]:
        people: list[dict[str, Any]] = []
        next_page_token: str | None = None
        page_count = 1
        while True:
            page = await self.get_page(next_page_token)
            start_idx = len(people)
            people.extend(page.items)
            logger.debug("Page", page=page_count, start=start_idx, length=len(people), key=self.SELECT_KEY)

            next_page_token = page.next_page_token
            if not next_page_token:
                break

            page_count += 1

        return people

    async def get_page(self, page_token: str | None = None) -> models.Page:
        try:
            request = (
                self._resource.people()
                .connections()
                .list(
                    resourceName=constants.PEOPLE_API_RESOURCE,
                    pageSize=constants.MAX_PAGE_SIZE,
                    personFields=constants.PERSON_FIELDS,
                    pageToken=page_token,
                )
            )
            results = await anyio.to_thread.run_sync(request.execute)
        except HttpError as e:
            msg = "Error fetching connections"
            raise ConnectionsFetchError(msg, payload=e.error_details or e.reason, status=e.resp.status) from e
        except Exception as e:
            msg = "Error fetching connections"
            raise ConnectionsFetchError(msg, payload=str(e)) from e

        items = cast("list[dict[str, Any]]", results.get(self.SELECT_KEY) or [])
        return models.Page(items, results.get("nextPageToken"))

    @cached_property
    def _resource(self) -> Resource:
        logger.debug("Creating Resource")
        return build("people", "v1", credentials=self.credentials, cache_discovery=False)
