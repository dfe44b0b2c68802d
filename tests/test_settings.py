import pytest

from pomodoro_api import repositories
from pomodoro_api.db import SQLiteRepository
from pomodoro_api.settings import get_settings

_VARS = ["PERSISTENCE_BACKEND", "SQLITE_DB_PATH", "CORS_ALLOW_ORIGINS", "LOG_LEVEL", "HOST", "PORT"]


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    # Run from an empty directory so no stray .env is picked up
    monkeypatch.chdir(tmp_path)
    for name in _VARS:
        # setenv first so teardown also removes values loaded from a .env file
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.sqlite_db_path == "./data/pomodoro.db"
        assert s.cors_allow_origins == ["http://localhost:5173", "http://localhost:5174"]
        assert s.log_level == "INFO"
        assert (s.host, s.port) == ("127.0.0.1", 8000)

    def test_overrides(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "SQLite")
        clean_env.setenv("SQLITE_DB_PATH", "/tmp/x.db")
        clean_env.setenv("CORS_ALLOW_ORIGINS", " https://a.example , ,https://b.example ")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("PORT", "9000")
        s = get_settings()
        assert s.persistence_backend == "sqlite"
        assert s.sqlite_db_path == "/tmp/x.db"
        assert s.cors_allow_origins == ["https://a.example", "https://b.example"]
        assert s.log_level == "DEBUG"
        assert s.port == 9000

    def test_unknown_backend_and_bad_port_fall_back(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "postgres")
        clean_env.setenv("PORT", "eighty")
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.port == 8000

    def test_wildcard_origins(self, clean_env):
        clean_env.setenv("CORS_ALLOW_ORIGINS", "*")
        assert get_settings().cors_allow_origins == ["*"]

    def test_dotenv_file_is_read(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("LOG_LEVEL=WARNING\n", encoding="utf-8")
        assert get_settings().log_level == "WARNING"


class TestRepositoryFactory:
    @pytest.fixture(autouse=True)
    def reset_cache(self):
        repositories._build_repository.cache_clear()
        yield
        repositories._build_repository.cache_clear()

    def test_memory_is_default_and_shared(self, clean_env):
        first = repositories.get_repository()
        assert isinstance(first, repositories.InMemoryRepository)
        assert repositories.get_repository() is first

    def test_sqlite_backend(self, clean_env, tmp_path):
        clean_env.setenv("PERSISTENCE_BACKEND", "sqlite")
        clean_env.setenv("SQLITE_DB_PATH", str(tmp_path / "db" / "app.db"))
        repo = repositories.get_repository()
        assert isinstance(repo, SQLiteRepository)
        assert (tmp_path / "db" / "app.db").exists()
