from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    database_url: str = "sqlite:///./repairtrack.db"
    sql_echo: bool = False

    # Tokens are issued by the identity provider; we only verify them.
    jwt_secret: str = "changeme"
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None

    log_level: str = "INFO"
    log_json: bool = False

    api_prefix: str = "/api/v0"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()  # reads from env
