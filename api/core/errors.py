"""
Typed, recoverable error kinds raised by the data-access core.

The HTTP layer maps each kind to a status code (see `api/main.py`); nothing in
`core/` or the feature services turns them into responses or logs them.
"""

from __future__ import annotations


class CoreError(RuntimeError):
    pass


class InvalidArgument(CoreError):
    """Malformed id, missing required field, empty content, self-subscription."""


class NotFound(CoreError):
    """Plain lookup by id found nothing."""


class NotFoundOrNotOwned(CoreError):
    """
    Owner-scoped mutation matched no record.

    Deliberately does not say whether the record is missing or belongs to
    someone else.
    """


class AlreadyExists(CoreError):
    """A direct insert hit a uniqueness constraint."""


class UpstreamFailure(CoreError):
    """An external collaborator (media upload) returned nothing usable."""
