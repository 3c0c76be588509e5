from contact_connections.api.services.connections import Connections, summarize

__all__ = ["Connections", "summarize"]
