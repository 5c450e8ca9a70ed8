from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Row store standing in for the "Lesson Database" sheet
    LESSONS_PATH: Path = Path("lessons.json")
    DRIVE_THUMBNAIL_SIZE: str = "w2000"

    # Security / features
    ALLOW_ORIGINS: str = "http://localhost:5173"
    ADMIN_PASSWORD: str = ""  # empty -> admin console disabled
    LOG_LEVEL: str = "INFO"

    # Live quiz attempts kept in memory; the oldest go first past this
    QUIZ_SESSIONS_MAX: int = 500

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOW_ORIGINS.split(",") if o.strip()]

    @property
    def admin_enabled(self) -> bool:
        return bool(self.ADMIN_PASSWORD)
