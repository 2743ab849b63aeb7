"""Errors raised by the storage adapters.

Database failures (connection errors, constraint violations, bad SQL) are not
wrapped: they surface as the SQLAlchemy exceptions raised by the driver.
"""


class StoreError(Exception):
    """Base class for errors raised by this package."""


class NotFoundError(StoreError, LookupError):
    """No row matched the requested identifier."""

    default_message = "Record not found"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class ContentNotFound(NotFoundError):
    default_message = "Content not found"


class LicenseNotFound(NotFoundError):
    default_message = "License not found"
