from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Goose Watch API"
    LOG_LEVEL: str = "INFO"

    # Storage backend: relational when set, JSON files otherwise
    DATABASE_URL: str | None = None
    DATABASE_ECHO: bool = False
    REPORTS_DATA_DIR: str = "./data"

    # Uploaded report images
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5001"

    # Retention and leaderboard windows
    REPORT_RETENTION_DAYS: int = 7
    LEADERBOARD_WINDOW_DAYS: int = 7
    RETENTION_SWEEP_INTERVAL_SECONDS: int = 3600
    LEADERBOARD_MAX_LIMIT: int = 50
    LEADERBOARD_API_MAX_LIMIT: int = 25

    # University of Waterloo campus (approximate)
    CAMPUS_NORTH: float = 43.4800
    CAMPUS_SOUTH: float = 43.4600
    CAMPUS_EAST: float = -80.5300
    CAMPUS_WEST: float = -80.5500

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
