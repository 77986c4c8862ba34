from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from app.models import Base

VERSIONS = Path(__file__).resolve().parents[1] / "alembic" / "versions"


def _load_migration(name: str):
    module_spec = importlib.util.spec_from_file_location(name, VERSIONS / f"{name}.py")
    assert module_spec is not None and module_spec.loader is not None
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def _run(engine, step) -> None:
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            step()


@pytest.fixture()
def migration():
    return _load_migration("20261019_01_create_realtime_tables")


def test_upgrade_creates_model_schema(tmp_path, migration):
    engine = create_engine(f"sqlite:///{tmp_path / 'realtime.db'}")

    _run(engine, migration.upgrade)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for table in Base.metadata.sorted_tables:
        migrated = {column["name"] for column in inspector.get_columns(table.name)}
        assert migrated == set(table.columns.keys()), table.name
    engine.dispose()


def test_downgrade_drops_everything(tmp_path, migration):
    engine = create_engine(f"sqlite:///{tmp_path / 'realtime.db'}")

    _run(engine, migration.upgrade)
    _run(engine, migration.downgrade)

    assert inspect(engine).get_table_names() == []
    engine.dispose()
