class ShortlinkError(Exception):
    """Base class for errors raised by the shortener services."""


class LinkNotFound(ShortlinkError):
    """Unknown or inactive short code, or unknown link id."""


class StoreError(ShortlinkError):
    """The backing store is unavailable or a query failed."""


class ShortCodeConflict(StoreError):
    """A write hit the unique index on short_code."""


class AliasTakenError(ShortlinkError):
    pass


class SafetyRejected(ShortlinkError):
    pass


class LinkForbidden(ShortlinkError):
    """The link exists but belongs to another owner."""
