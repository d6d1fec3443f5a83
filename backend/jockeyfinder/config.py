from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./jockeyfinder.db"
    loveracing_url: str = "https://loveracing.nz/ServerScript/RaceInfo.aspx/GetCalendarEvents"
    http_timeout: float = 30
    upload_dir: str = "./uploads"
    verification_bucket: str = "verification-docs"
    public_window_days: int = 30

    class Config:
        env_file = ".env"

    @property
    def async_database_url(self) -> str:
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url


settings = Settings()
