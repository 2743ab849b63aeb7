"""SQL dialect strategy for the storage adapters.

The caller picks a Dialect once (usually from the configured database URL)
and hands it to each store. The dialect owns the table definitions and the
placeholder syntax; statements themselves are written once with named binds.
"""

import re
from enum import Enum
from typing import Tuple

DEFAULT_CONTENT_TYPE = "application/epub+zip"

_NAMED_BIND = re.compile(r"(?<![:\w]):(\w+)")


CONTENT_TABLE = (
    "CREATE TABLE IF NOT EXISTS content ("
    "id varchar(255) PRIMARY KEY,"
    "encryption_key varchar(64) NOT NULL,"
    "location text NOT NULL,"
    "length bigint,"
    "sha256 varchar(64),"
    "{quoted_type} varchar(256) NOT NULL default '" + DEFAULT_CONTENT_TYPE + "')"
)

CONTENT_TABLE_POSTGRES = (
    "CREATE TABLE IF NOT EXISTS content ("
    "id varchar(255) PRIMARY KEY,"
    "encryption_key bytea NOT NULL,"
    "location text NOT NULL,"
    "length bigint,"
    "sha256 varchar(64),"
    "\"type\" varchar(256) NOT NULL default '" + DEFAULT_CONTENT_TYPE + "')"
)

LICENSE_TABLE = (
    "CREATE TABLE IF NOT EXISTS license ("
    "id varchar(255) PRIMARY KEY,"
    "user_id varchar(255) NOT NULL,"
    "provider varchar(255) NOT NULL,"
    "issued datetime NOT NULL,"
    "updated datetime DEFAULT NULL,"
    "rights_print int(11) DEFAULT NULL,"
    "rights_copy int(11) DEFAULT NULL,"
    "rights_start datetime DEFAULT NULL,"
    "rights_end datetime DEFAULT NULL,"
    "content_fk varchar(255) NOT NULL,"
    "lsd_status integer default 0,"
    "FOREIGN KEY(content_fk) REFERENCES content(id))"
)

LICENSE_TABLE_POSTGRES = (
    "CREATE TABLE IF NOT EXISTS license ("
    "id VARCHAR(255) PRIMARY KEY,"
    "user_id VARCHAR(255) NOT NULL,"
    "provider VARCHAR(255) NOT NULL,"
    "issued TIMESTAMPTZ NOT NULL,"
    "updated TIMESTAMPTZ DEFAULT NULL,"
    "rights_print INT DEFAULT NULL,"
    "rights_copy INT DEFAULT NULL,"
    "rights_start TIMESTAMPTZ DEFAULT NULL,"
    "rights_end TIMESTAMPTZ DEFAULT NULL,"
    "content_fk VARCHAR(255) NOT NULL,"
    "lsd_status INT default 0,"
    "FOREIGN KEY(content_fk) REFERENCES content(id))"
)

# Legacy SQLite databases were created before the media type column existed.
SQLITE_ADD_CONTENT_TYPE = (
    "ALTER TABLE content ADD COLUMN \"type\" varchar(255) NOT NULL "
    "DEFAULT '" + DEFAULT_CONTENT_TYPE + "'"
)


class Dialect(Enum):
    """Database backend flavour used to pick DDL and placeholder syntax."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @classmethod
    def from_database_setting(cls, value: str) -> "Dialect":
        """Select a dialect from a backend name or database URL.

        Prefix match on ``postgres`` or ``sqlite``; anything else, including an
        empty value, falls back to the MySQL flavour.

        Args:
            value: Configuration string, e.g. ``postgresql://...`` or ``sqlite:///lcp.db``

        Returns:
            Matching Dialect member
        """
        setting = (value or "").strip().lower()
        if setting.startswith("postgres"):
            return cls.POSTGRES
        if setting.startswith("sqlite"):
            return cls.SQLITE
        return cls.MYSQL

    def placeholder(self, position: int) -> str:
        """Positional placeholder for the 1-based parameter ``position``."""
        if self is Dialect.POSTGRES:
            return f"${position}"
        return "?"

    def render(self, sql: str) -> str:
        """Rewrite named binds (``:name``) as this dialect's positional placeholders.

        Positions follow the order in which binds first appear in the text.
        """
        positions = {}

        def _replace(match):
            name = match.group(1)
            if name not in positions:
                positions[name] = len(positions) + 1
            return self.placeholder(positions[name])

        return _NAMED_BIND.sub(_replace, sql)

    @property
    def content_table_ddl(self) -> str:
        if self is Dialect.POSTGRES:
            return CONTENT_TABLE_POSTGRES
        if self is Dialect.MYSQL:
            return CONTENT_TABLE.format(quoted_type="`type`")
        return CONTENT_TABLE.format(quoted_type='"type"')

    @property
    def license_table_ddl(self) -> str:
        if self is Dialect.POSTGRES:
            return LICENSE_TABLE_POSTGRES
        return LICENSE_TABLE

    @property
    def content_migrations(self) -> Tuple[str, ...]:
        """Best-effort statements run after the content table bootstrap."""
        if self is Dialect.SQLITE:
            return (SQLITE_ADD_CONTENT_TYPE,)
        return ()
