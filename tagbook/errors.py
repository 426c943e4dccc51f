from __future__ import annotations


class TagbookError(Exception):
    """Base class for errors raised by tagbook."""


class ValidationError(TagbookError, ValueError):
    """Rejected input: empty name, color outside the palette."""


class NotFoundError(TagbookError, LookupError):
    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} '{identifier}' not found")
