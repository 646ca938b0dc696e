"""
CLI tests
"""

from typer.testing import CliRunner

from ideatrium.cli import app
from ideatrium.config.loader import reset_config
from ideatrium.core.db import DatabaseManager


def test_init_db_creates_schema(tmp_path):
    db_path = tmp_path / "cli.db"
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        f"[database]\npath = '{db_path}'\n\n[logging]\nlogs_dir = '{tmp_path / 'logs'}'\n",
        encoding="utf-8",
    )

    try:
        result = CliRunner().invoke(app, ["init-db", "--config-file", str(config_path)])
    finally:
        reset_config()

    assert result.exit_code == 0, result.output
    assert "Database ready" in result.output
    assert db_path.exists()
    assert DatabaseManager(str(db_path)).get_profile("nobody") is None
