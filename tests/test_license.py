import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from lcpstore.domain.models import Content, License, LicenseReport, UserInfo, UserRights
from lcpstore.exceptions import LicenseNotFound

PLUS_TWO = datetime.timezone(datetime.timedelta(hours=2))
ISSUED = datetime.datetime(2024, 3, 1, 12, 30, 0, tzinfo=PLUS_TWO)


def _license(license_id="l1", content_id="c1", **overrides):
    values = dict(
        id=license_id,
        user=UserInfo(id="user-1"),
        provider="https://provider.example",
        issued=ISSUED,
        rights=UserRights(
            print=10,
            copy=2000,
            start=datetime.datetime(2024, 3, 1, tzinfo=PLUS_TWO),
            end=datetime.datetime(2024, 4, 1, tzinfo=datetime.timezone.utc),
        ),
        content_id=content_id,
    )
    values.update(overrides)
    return License(**values)


@pytest.fixture
def contents(content_index):
    for content_id in ("c1", "c2"):
        content_index.add(Content(id=content_id, encryption_key=b"k", location=f"/{content_id}"))


def test_add_and_get_round_trip(license_store, contents):
    lic = _license()
    license_store.add(lic)

    fetched = license_store.get("l1")
    assert fetched.id == "l1"
    assert fetched.user == UserInfo(id="user-1")
    assert fetched.provider == lic.provider
    assert fetched.issued == ISSUED
    assert fetched.updated is None
    assert fetched.rights.print == 10
    assert fetched.rights.copy == 2000
    assert fetched.rights.start == lic.rights.start
    assert fetched.rights.end == lic.rights.end
    assert fetched.content_id == "c1"
    assert fetched.lsd_status == 0


def test_add_ignores_updated_on_record(license_store, contents):
    license_store.add(_license(updated=datetime.datetime(2030, 1, 1)))
    assert license_store.get("l1").updated is None


def test_add_with_null_rights(license_store, contents):
    license_store.add(_license(rights=UserRights()))
    assert license_store.get("l1").rights == UserRights()


def test_get_missing_license_raises_not_found(license_store):
    with pytest.raises(LicenseNotFound, match="License not found"):
        license_store.get("nope")


def test_add_with_unknown_content_violates_foreign_key(license_store, contents):
    with pytest.raises(IntegrityError):
        license_store.add(_license(content_id="missing"))


def test_add_duplicate_id_surfaces_integrity_error(license_store, contents):
    license_store.add(_license())
    with pytest.raises(IntegrityError):
        license_store.add(_license())


def test_update_rewrites_fields_and_stamps_updated(license_store, contents):
    license_store.add(_license())
    changed = _license(
        user=UserInfo(id="user-2"),
        provider="https://other.example",
        rights=UserRights(print=0, copy=5),
        content_id="c2",
        issued=datetime.datetime(2000, 1, 1),
    )
    license_store.update(changed)

    fetched = license_store.get("l1")
    assert fetched.user.id == "user-2"
    assert fetched.provider == "https://other.example"
    assert fetched.rights == UserRights(print=0, copy=5)
    assert fetched.content_id == "c2"
    # issued is immutable
    assert fetched.issued == ISSUED
    assert fetched.updated is not None
    assert fetched.updated.microsecond == 0


def test_update_missing_license_is_silent(license_store, contents):
    # unlike update_rights, update does not report a missing row
    license_store.update(_license("ghost"))

    with pytest.raises(LicenseNotFound):
        license_store.get("ghost")


def test_update_rights_only_touches_rights(license_store, contents):
    license_store.add(_license())
    license_store.update_rights(
        _license(
            user=UserInfo(id="ignored"),
            content_id="c2",
            rights=UserRights(print=1, copy=1, end=datetime.datetime(2025, 1, 1, tzinfo=PLUS_TWO)),
        )
    )

    fetched = license_store.get("l1")
    assert fetched.rights.print == 1
    assert fetched.rights.copy == 1
    assert fetched.rights.start is None
    assert fetched.rights.end == datetime.datetime(2025, 1, 1, tzinfo=PLUS_TWO)
    assert fetched.user.id == "user-1"
    assert fetched.content_id == "c1"
    assert fetched.updated is not None
    assert fetched.updated.microsecond == 0


def test_update_rights_missing_license_raises_not_found(license_store, contents):
    with pytest.raises(LicenseNotFound):
        license_store.update_rights(_license("ghost"))


def test_update_lsd_status(license_store, contents):
    license_store.add(_license())
    license_store.update_lsd_status("l1", 3)

    fetched = license_store.get("l1")
    assert fetched.lsd_status == 3
    # status changes leave the timestamp alone
    assert fetched.updated is None


def test_update_lsd_status_missing_license_is_silent(license_store, contents):
    license_store.update_lsd_status("ghost", 2)


def test_list_filters_by_content(license_store, contents):
    license_store.add(_license("a", "c1"))
    license_store.add(_license("b", "c2"))
    license_store.add(_license("c", "c1"))

    reports = list(license_store.list("c1", 10, 0))

    assert sorted(r.id for r in reports) == ["a", "c"]
    assert all(isinstance(r, LicenseReport) for r in reports)
    assert all(r.content_id == "c1" for r in reports)


def test_list_paginates_with_size_then_index(license_store, contents):
    for i in range(5):
        license_store.add(_license(f"l{i}", "c1"))

    first = [r.id for r in license_store.list("c1", 2, 0)]
    second = [r.id for r in license_store.list("c1", 2, 1)]
    third = [r.id for r in license_store.list("c1", 2, 2)]

    assert len(first) == 2 and len(second) == 2 and len(third) == 1
    assert len(set(first + second + third)) == 5


def test_list_all_orders_by_issued_descending(license_store, contents):
    for i in range(25):
        issued = ISSUED + datetime.timedelta(minutes=i)
        license_store.add(_license(f"l{i:02d}", "c1" if i % 2 else "c2", issued=issued))

    first = [r.id for r in license_store.list_all(10, 0)]
    second = [r.id for r in license_store.list_all(10, 1)]
    last = [r.id for r in license_store.list_all(10, 2)]

    assert first == [f"l{i:02d}" for i in range(24, 14, -1)]
    assert second == [f"l{i:02d}" for i in range(14, 4, -1)]
    assert last == [f"l{i:02d}" for i in range(4, -1, -1)]


def test_list_all_stream_ends_after_last_record(license_store, contents):
    license_store.add(_license())
    stream = license_store.list_all(10, 0)

    assert next(stream).id == "l1"
    with pytest.raises(StopIteration):
        next(stream)
    assert stream.closed
    with pytest.raises(StopIteration):
        next(stream)


def test_list_all_abandoned_early_releases_connection(license_store, contents):
    for i in range(3):
        license_store.add(_license(f"l{i}"))

    with license_store.list_all(10, 0) as stream:
        next(stream)
    assert stream.closed

    # the table is still writable once the cursor is released
    license_store.update_lsd_status("l0", 1)
    assert license_store.get("l0").lsd_status == 1


def test_aware_timestamps_keep_their_instant(license_store, contents):
    license_store.add(_license())

    fetched = license_store.get("l1")

    assert fetched.issued == ISSUED
    assert fetched.issued.utcoffset() == datetime.timedelta(0)
    assert fetched.issued.hour == 10
    assert fetched.rights.start == datetime.datetime(2024, 2, 29, 22, 0, tzinfo=datetime.timezone.utc)


def test_naive_timestamps_are_read_as_utc(license_store, contents):
    license_store.add(_license(issued=datetime.datetime(2024, 3, 1, 12, 30)))

    fetched = license_store.get("l1")

    assert fetched.issued == datetime.datetime(2024, 3, 1, 12, 30, tzinfo=datetime.timezone.utc)


def test_list_all_orders_mixed_offsets_by_instant(license_store, contents):
    utc = datetime.timezone.utc
    # 11:00 UTC, 10:30 UTC, 10:45 UTC
    license_store.add(_license("latest", issued=datetime.datetime(2024, 3, 1, 13, 0, tzinfo=PLUS_TWO)))
    license_store.add(_license("utc", issued=datetime.datetime(2024, 3, 1, 10, 30, tzinfo=utc)))
    license_store.add(_license("mid", issued=datetime.datetime(2024, 3, 1, 12, 45, tzinfo=PLUS_TWO)))

    ids = [r.id for r in license_store.list_all(10, 0)]

    assert ids == ["latest", "mid", "utc"]
