from sqlalchemy import create_engine, inspect

from scripts import init_db


def test_init_db_creates_tables(db_url):
    assert init_db.main(["--database-url", db_url, "--log-level", "debug"]) == 0

    engine = create_engine(db_url)
    try:
        assert set(inspect(engine).get_table_names()) == {"content", "license"}
    finally:
        engine.dispose()


def test_init_db_is_repeatable(db_url):
    assert init_db.main(["--database-url", db_url]) == 0
    assert init_db.main(["--database-url", db_url]) == 0
