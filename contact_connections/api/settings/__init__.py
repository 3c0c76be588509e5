from contact_connections.api.settings.base import Settings, get_settings
from contact_connections.api.settings.oauth import OAuthClientSettings

__all__ = ["OAuthClientSettings", "Settings", "get_settings"]
