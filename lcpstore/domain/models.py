from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from lcpstore.dialect import DEFAULT_CONTENT_TYPE


@dataclass
class Content:
    id: str
    encryption_key: bytes = field(default=b"", repr=False)
    location: str = ""
    length: Optional[int] = None
    sha256: Optional[str] = None
    type: str = DEFAULT_CONTENT_TYPE


@dataclass
class UserInfo:
    id: str = ""


@dataclass
class UserRights:
    print: Optional[int] = None
    copy: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class License:
    id: str
    user: UserInfo = field(default_factory=UserInfo)
    provider: str = ""
    issued: Optional[datetime] = None
    updated: Optional[datetime] = None
    rights: UserRights = field(default_factory=UserRights)
    content_id: str = ""
    lsd_status: int = 0


@dataclass
class LicenseReport(License):
    """License row as returned by the list operations."""
