"""License store: rights and status metadata keyed by license id."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from sqlalchemy import Integer, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from lcpstore.cursor import ResultStream
from lcpstore.dialect import Dialect
from lcpstore.domain.models import License, LicenseReport, UserInfo, UserRights
from lcpstore.exceptions import LicenseNotFound
from lcpstore.types import UTCDateTime

logger = logging.getLogger(__name__)

COLUMNS = (
    "id, user_id, provider, issued, updated, "
    "rights_print, rights_copy, rights_start, rights_end, content_fk, lsd_status"
)

DATETIME_COLUMNS = ("issued", "updated", "rights_start", "rights_end")

STATEMENTS: Dict[str, str] = {
    "get": f"SELECT {COLUMNS} FROM license WHERE id = :id",
    "add": (
        f"INSERT INTO license ({COLUMNS}) "
        "VALUES (:id, :user_id, :provider, :issued, :updated, "
        ":rights_print, :rights_copy, :rights_start, :rights_end, :content_fk, :lsd_status)"
    ),
    "update": (
        "UPDATE license SET user_id=:user_id, provider=:provider, updated=:updated, "
        "rights_print=:rights_print, rights_copy=:rights_copy, "
        "rights_start=:rights_start, rights_end=:rights_end, content_fk=:content_fk "
        "WHERE id=:id"
    ),
    "update_rights": (
        "UPDATE license SET rights_print=:rights_print, rights_copy=:rights_copy, "
        "rights_start=:rights_start, rights_end=:rights_end, updated=:updated "
        "WHERE id=:id"
    ),
    "update_lsd_status": "UPDATE license SET lsd_status=:lsd_status WHERE id=:id",
    "list": (
        f"SELECT {COLUMNS} FROM license "
        "WHERE content_fk=:content_fk LIMIT :limit OFFSET :offset"
    ),
    "list_all": (
        f"SELECT {COLUMNS} FROM license "
        "ORDER BY issued desc LIMIT :limit OFFSET :offset"
    ),
}


def _utc_now() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _map_license(row: Mapping[str, Any], record_class=License) -> License:
    return record_class(
        id=row["id"],
        user=UserInfo(id=row["user_id"]),
        provider=row["provider"],
        issued=row["issued"],
        updated=row["updated"],
        rights=UserRights(
            print=row["rights_print"],
            copy=row["rights_copy"],
            start=row["rights_start"],
            end=row["rights_end"],
        ),
        content_id=row["content_fk"],
        lsd_status=row["lsd_status"] or 0,
    )


def _map_report(row: Mapping[str, Any]) -> LicenseReport:
    return _map_license(row, LicenseReport)


def _rights_params(license: License) -> Dict[str, Any]:
    rights = license.rights or UserRights()
    return {
        "rights_print": rights.print,
        "rights_copy": rights.copy,
        "rights_start": rights.start,
        "rights_end": rights.end,
    }


def _page_params(page: int, page_num: int) -> Dict[str, int]:
    # page is the page size, page_num the zero-based page index
    return {"limit": page, "offset": page_num * page}


class LicenseStore:
    """Data access object for the ``license`` table.

    Rows reference ``content.id`` through ``content_fk``; the database
    enforces that reference, this class never looks at the content table.
    """

    def __init__(self, engine: Engine, dialect: Dialect):
        """Bootstrap the license table and prepare statements.

        Args:
            engine: SQLAlchemy engine owned by the caller
            dialect: Backend flavour selected by the caller

        Raises:
            SQLAlchemyError: If the table cannot be created
        """
        self.engine = engine
        self.dialect = dialect
        self._bootstrap()
        self.statements = self._prepare()

    def _bootstrap(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.exec_driver_sql(self.dialect.license_table_ddl)
        except SQLAlchemyError as e:
            logger.error(f"Error creating license table: {e}")
            raise

    def _prepare(self):
        result_types = {name: UTCDateTime() for name in DATETIME_COLUMNS}
        statements = {}
        for name, sql in STATEMENTS.items():
            stmt = text(sql)
            binds = [
                bindparam(column, type_=UTCDateTime())
                for column in DATETIME_COLUMNS
                if f":{column}" in sql
            ]
            if ":limit" in sql:
                binds += [bindparam("limit", type_=Integer), bindparam("offset", type_=Integer)]
            if binds:
                stmt = stmt.bindparams(*binds)
            if sql.startswith("SELECT"):
                stmt = stmt.columns(**result_types)
            statements[name] = stmt
            logger.debug("Prepared license.%s: %s", name, self.dialect.render(sql))
        return statements

    def get(self, license_id: str) -> License:
        """Fetch a license with its user and rights.

        Raises:
            LicenseNotFound: If no row has this id
        """
        with self.engine.connect() as conn:
            row = conn.execute(self.statements["get"], {"id": license_id}).first()
        if row is None:
            raise LicenseNotFound()
        return _map_license(row._mapping)

    def add(self, license: License) -> None:
        """Insert a new license; ``updated`` is always stored as NULL.

        Raises:
            IntegrityError: If the id exists or the content reference is unknown
        """
        params = {
            "id": license.id,
            "user_id": license.user.id,
            "provider": license.provider,
            "issued": license.issued,
            "updated": None,
            "content_fk": license.content_id,
            "lsd_status": license.lsd_status or 0,
        }
        params.update(_rights_params(license))
        with self.engine.begin() as conn:
            conn.execute(self.statements["add"], params)
        logger.info(f"Added license {license.id} for content {license.content_id}")

    def update(self, license: License) -> None:
        """Rewrite user, provider, rights and content reference.

        Stamps ``updated`` with the current time. Does not check that the
        license exists: a missing id is a silent no-op.
        """
        params = {
            "id": license.id,
            "user_id": license.user.id,
            "provider": license.provider,
            "updated": _utc_now(),
            "content_fk": license.content_id,
        }
        params.update(_rights_params(license))
        with self.engine.begin() as conn:
            conn.execute(self.statements["update"], params)
        logger.info(f"Updated license {license.id}")

    def update_rights(self, license: License) -> None:
        """Rewrite only the rights of a license and stamp ``updated``.

        Raises:
            LicenseNotFound: If no row was affected
        """
        params = {"id": license.id, "updated": _utc_now()}
        params.update(_rights_params(license))
        with self.engine.begin() as conn:
            affected = conn.execute(self.statements["update_rights"], params).rowcount
        if affected == 0:
            raise LicenseNotFound()
        logger.info(f"Updated rights of license {license.id}")

    def update_lsd_status(self, license_id: str, status: int) -> None:
        """Set the status document code; a missing id is a silent no-op."""
        with self.engine.begin() as conn:
            conn.execute(
                self.statements["update_lsd_status"],
                {"id": license_id, "lsd_status": status},
            )
        logger.debug("License %s status set to %s", license_id, status)

    def list(self, content_id: str, page: int, page_num: int) -> ResultStream[LicenseReport]:
        """Stream one page of the licenses issued for a content.

        Args:
            content_id: Content reference to filter on
            page: Page size
            page_num: Zero-based page index

        Returns:
            Stream of at most ``page`` reports, in database order
        """
        params = {"content_fk": content_id}
        params.update(_page_params(page, page_num))
        return ResultStream.open(self.engine, self.statements["list"], params, _map_report)

    def list_all(self, page: int, page_num: int) -> ResultStream[LicenseReport]:
        """Stream one page of all licenses, most recently issued first."""
        return ResultStream.open(
            self.engine, self.statements["list_all"], _page_params(page, page_num), _map_report
        )
