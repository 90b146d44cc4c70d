from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database settings
    database_url: str = "sqlite:///data/calcflow.db"
    database_echo: bool = False

    # Web server settings
    cors_allow_origins: list[str] = ["*"]

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
