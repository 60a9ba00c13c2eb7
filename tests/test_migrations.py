from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[1]


def alembic_config(url):
    config = Config()
    config.set_main_option("script_location", str(ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", url)
    return config


def test_upgrade_creates_schema_and_downgrade_removes_it(tmp_path):
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    config = alembic_config(url)

    command.upgrade(config, "head")

    engine = create_engine(url)
    inspector = inspect(engine)
    assert {"users", "accounts", "transactions", "budgets"} <= set(inspector.get_table_names())
    budget_constraints = {c["name"] for c in inspector.get_unique_constraints("budgets")}
    assert "uq_user_category_period" in budget_constraints

    command.downgrade(config, "base")

    assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    engine.dispose()
