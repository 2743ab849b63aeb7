"""Record types persisted by the storage adapters."""

from .models import Content, License, LicenseReport, UserInfo, UserRights

__all__ = ["Content", "License", "LicenseReport", "UserInfo", "UserRights"]
