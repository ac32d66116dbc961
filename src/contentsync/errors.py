"""Exception types shared across contentsync."""

from __future__ import annotations


class ContentSyncError(Exception):
    """Base class for all contentsync errors."""


class RemoteStoreError(ContentSyncError):
    """A remote store call failed (HTTP error, connection error, bad payload)."""

    def __init__(self, table: str, message: str, status: int | None = None) -> None:
        self.table = table
        self.status = status
        detail = f"{table}: {message}"
        if status is not None:
            detail += f" (HTTP {status})"
        super().__init__(detail)


class LegacyValueError(ContentSyncError):
    """A legacy cache value could not be coerced into the expected shape."""


class DuplicateSlugError(ContentSyncError):
    """A post slug is already used by a different post in the same table."""

    def __init__(self, table: str, slug: str, existing_id: str) -> None:
        self.table = table
        self.slug = slug
        self.existing_id = existing_id
        super().__init__(f"{table}: slug '{slug}' already used by post {existing_id}")
