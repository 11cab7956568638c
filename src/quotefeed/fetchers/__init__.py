"""HTTP fetchers for retrieving works from remote sources."""
from .remote_text import RemoteWorkFetcher, RemoteWorkFetchError

__all__ = ["RemoteWorkFetcher", "RemoteWorkFetchError"]
