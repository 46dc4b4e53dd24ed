from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URL")
    mongodb_db_name: str = Field(default="bible_study", alias="MONGODB_DB_NAME")
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000, alias="MONGODB_SERVER_SELECTION_TIMEOUT_MS"
    )

    # Application Settings
    app_name: str = Field(default="Bible Study Groups", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000", alias="ALLOWED_ORIGINS"
    )

    # Firebase Configuration
    firebase_credentials_path: Optional[str] = Field(
        default="./firebase-credentials.json", alias="FIREBASE_CREDENTIALS_PATH"
    )
    firebase_credentials_base64: Optional[str] = Field(
        default=None, alias="FIREBASE_CREDENTIALS_BASE64"
    )

    # Grouping
    default_group_size: int = Field(default=10, alias="DEFAULT_GROUP_SIZE")
    max_group_size: int = Field(default=50, alias="MAX_GROUP_SIZE")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
