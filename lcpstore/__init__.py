"""Storage layer for the LCP license server.

Two adapters over a relational database: the content index (encryption
metadata per content id) and the license store (rights per license id).
Both take an injected SQLAlchemy engine and an explicit dialect.
"""

from .dialect import Dialect
from .exceptions import ContentNotFound, LicenseNotFound, NotFoundError, StoreError
from .index import ContentIndex
from .license import LicenseStore

__all__ = [
    "Dialect",
    "ContentIndex",
    "LicenseStore",
    "StoreError",
    "NotFoundError",
    "ContentNotFound",
    "LicenseNotFound",
]
