"""Settings — environment overrides and URL normalization."""

from radiocatalog.config import Settings


def test_defaults():
    settings = Settings(_env_file=None, database_url="sqlite:///x.db")
    assert settings.background_workers == 2
    assert settings.sync_on_close
    assert settings.log_format == "json"


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CATALOG_TLE_DIRECTORY", "/var/lib/tle")
    monkeypatch.setenv("CATALOG_BACKGROUND_WORKERS", "4")
    settings = Settings(_env_file=None)
    assert settings.tle_directory == "/var/lib/tle"
    assert settings.background_workers == 4


def test_postgres_scheme_normalized():
    settings = Settings(_env_file=None, database_url="postgres://u:p@db/catalog")
    assert settings.database_url == "postgresql://u:p@db/catalog"
