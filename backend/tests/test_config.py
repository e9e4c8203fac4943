from healthsync.config import Settings


class TestSettings:
    def test_auto_backend_follows_database_url(self):
        assert Settings(storage_backend="auto", database_url=None).resolved_storage_backend == "memory"
        assert (
            Settings(storage_backend="auto", database_url="postgresql+asyncpg://db/emr").resolved_storage_backend
            == "sql"
        )

    def test_explicit_backend_wins(self):
        assert Settings(storage_backend="memory", database_url="sqlite+aiosqlite://").resolved_storage_backend == "memory"

    def test_cors_origins_are_split_and_trimmed(self):
        settings = Settings(frontend_urls="http://a.test/, http://b.test ,")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
