from pathlib import Path
from typing import Final

# If modifying these scopes, delete the file token.json.
SCOPES: Final[list[str]] = ["https://www.googleapis.com/auth/contacts.readonly"]

PERSON_FIELDS: Final[str] = "names,emailAddresses,phoneNumbers"  # see https://developers.google.com/people/api/rest/v1/people
PEOPLE_API_RESOURCE: Final[str] = "people/me"
MAX_PAGE_SIZE: Final[int] = 100

AUTHORIZED_USER: Final[str] = "authorized_user"
ACCESS_TYPE: Final[str] = "offline"

TOKEN_FILE: Final[str] = "token.json"  # noqa: S105
CREDENTIALS_FILE: Final[str] = "credentials.json"

DEFAULT_TOKEN_FILE: Final[Path] = Path(Path.cwd(), TOKEN_FILE).resolve()
DEFAULT_CREDENTIALS_FILE: Final[Path] = Path(Path.cwd(), CREDENTIALS_FILE).resolve()

NO_DISPLAY_NAME: Final[str] = "No display name"
NO_PHONE_NUMBERS: Final[str] = "No phone numbers"

APP_NAME: Final[str] = "contact-connections"
