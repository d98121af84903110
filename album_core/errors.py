"""Error taxonomy shared by the document store and its collaborators."""

from __future__ import annotations


class AlbumError(Exception):
    """Base class for album editing errors."""


class NotFoundError(AlbumError, LookupError):
    """A referenced album, page or asset does not exist."""

    def __init__(self, kind: str, ident: object) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class LockedError(AlbumError):
    """A mutation targeted a locked album, page or asset.

    The document store converts this into a silent no-op; it never reaches
    callers of the public operations.
    """


class ValidationError(AlbumError, ValueError):
    """Malformed input (layout config, patch keys) rejected before mutation."""


class PersistenceFailure(AlbumError):
    """Remote or local storage could not complete a read or write."""
