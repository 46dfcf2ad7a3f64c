from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

from backend.app.db import Base
from backend.app import models  # noqa: F401


ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"
TABLES = {"transactions", "insights", "predictions"}


def _load_script() -> ScriptDirectory:
    config = Config(str(ALEMBIC_INI))
    return ScriptDirectory.from_config(config)


def test_alembic_single_head():
    script = _load_script()
    heads = script.get_heads()
    assert len(heads) == 1


def test_alembic_upgrade_creates_tables(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'alembic.db'}"
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")

    engine = create_engine(database_url, future=True)
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    prediction_pk = inspector.get_pk_constraint("predictions")["constrained_columns"]
    engine.dispose()

    assert TABLES <= tables
    assert set(prediction_pk) == {"user_id", "target_period"}


def test_migration_matches_models(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'alembic.db'}"
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")

    engine = create_engine(database_url, future=True)
    inspector = inspect(engine)
    for table in TABLES:
        migrated = {c["name"] for c in inspector.get_columns(table)}
        modeled = {c.name for c in Base.metadata.tables[table].columns}
        assert migrated == modeled, table
    engine.dispose()


def test_sqlite_bootstrap_creates_tables(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'bootstrap.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    tables = set(inspect(engine).get_table_names())
    engine.dispose()
    assert TABLES <= tables


def test_models_stamp_rows_with_the_facts_clock():
    from backend.app.facts import dates

    assert models.utcnow is dates.utcnow
    assert models.utcnow().tzinfo is not None
