import os
import sys

import pytest

# Ensure repo root is on sys.path so tests can import the lcpstore package
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from lcpstore.database import create_database_engine
from lcpstore.dialect import Dialect
from lcpstore.index import ContentIndex
from lcpstore.license import LicenseStore


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'lcp.db'}"


@pytest.fixture
def engine(db_url):
    engine = create_database_engine(db_url)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def content_index(engine):
    return ContentIndex(engine, Dialect.SQLITE)


@pytest.fixture
def license_store(engine, content_index):
    return LicenseStore(engine, Dialect.SQLITE)
