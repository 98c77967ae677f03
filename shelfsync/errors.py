"""Failure taxonomy shared by the sync layer and its remote collaborators."""


class ShelfSyncError(Exception):
    """Base class for every failure the sync layer surfaces."""


class RemoteUnavailable(ShelfSyncError):
    """The remote store or search API could not be reached."""


class Unauthorized(ShelfSyncError):
    """A mutation was attempted by someone who does not own the data."""


class NotFound(ShelfSyncError):
    """A referenced book or shelf entry does not exist."""


class Cancelled(ShelfSyncError):
    """A request was superseded before it completed."""


class ValidationError(ShelfSyncError):
    """A request was rejected before any local mutation was applied."""
