"""Tests for the command line entry point."""

import logging

import pytest
from typer.testing import CliRunner

from tcmwalker.cli import app, drop_database, prepare_store
from tcmwalker.config import Settings
from tcmwalker.exceptions import DescriptorError

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("tcmwalker").handlers.clear()


def test_help():
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "--config-path" in result.output


def test_missing_config_exits_with_error(tmp_path):
    db_path = tmp_path / "tcm.db"

    result = runner.invoke(
        app,
        [
            "--config-path",
            str(tmp_path / "nowhere"),
            "--db-path",
            str(db_path),
            "--log-file",
            str(tmp_path / "tcm.log"),
        ],
    )

    assert result.exit_code == 1
    assert not db_path.exists()
    assert "Init data failed" in (tmp_path / "tcm.log").read_text()


@pytest.mark.asyncio
async def test_prepare_store(config_dir, tmp_path):
    settings = Settings(config_path=config_dir, db_path=tmp_path / "tcm.db")

    store = prepare_store(settings)

    assert settings.db_path.exists()
    assert len(await store.fetch_all("hosts")) == 4
    store.close()


def test_prepare_store_replaces_old_database(config_dir, tmp_path):
    db_path = tmp_path / "tcm.db"
    prepare_store(Settings(config_path=config_dir, db_path=db_path)).close()

    store = prepare_store(Settings(config_path=config_dir, db_path=db_path))

    assert store.get_host_id("127.0.0.3", "2", "200") == 3
    store.close()


def test_prepare_store_failure(tmp_path):
    settings = Settings(config_path=tmp_path / "nowhere", db_path=tmp_path / "tcm.db")

    with pytest.raises(DescriptorError):
        prepare_store(settings)


def test_drop_database(tmp_path):
    db_path = tmp_path / "tcm.db"
    db_path.write_bytes(b"")

    drop_database(db_path)
    drop_database(db_path)

    assert not db_path.exists()
