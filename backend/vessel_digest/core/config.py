from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_NAME: str = "Vessel Digest"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    REDIS_URL: str = "redis://localhost:6379"
    version: str = "0.1.0"

    # Operator API key; empty leaves the API open (local development)
    API_KEY: str = ""

    # SMTP transport, an empty host turns sending into a logged no-op
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "notifications@example.com"
    SMTP_FROM_NAME: str = "Vessel Digest"

    # Grouped notifications
    NOTIFICATION_QUEUE_NAME: str = "arq:emails"
    NOTIFICATION_DEBOUNCE_SECONDS: int = 120
    NOTIFICATION_GROUPING_WINDOW_MINUTES: int = 5
    NOTIFICATION_DIGEST_CAP: int = 3
    NOTIFICATION_ELEVATED_ROLES: str = "supervisor,administrator"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def elevated_roles(self) -> set[str]:
        return {r.strip() for r in self.NOTIFICATION_ELEVATED_ROLES.split(",") if r.strip()}


settings = Settings()
