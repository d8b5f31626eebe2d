"""Errors raised by the fetch clients."""

from typing import Optional


class FetchError(RuntimeError):
    """An upstream request failed after retries; nothing should be persisted for it."""

    def __init__(self, url: str, status: int, detail: Optional[str] = None):
        self.url = url
        self.status = status
        self.detail = detail
        message = f"GET {url} failed with status {status}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
