from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Locate the nearest .env starting from this file's directory
def find_env_file() -> Path | None:
    current = Path(__file__).resolve()
    for parent in current.parents:
        env_file = parent / ".env"
        if env_file.exists():
            return env_file
    return None


ENV_FILE = find_env_file()
BASE_DIR = ENV_FILE.parent if ENV_FILE else Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "Trade Journal"

    # Storage: any SQLAlchemy async URL
    DATABASE_URL: str = "sqlite+aiosqlite:///./journal.db"
    DB_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # Comma separated list, "*" allows any origin
    CORS_ORIGINS: str = "*"

    # Trades logged without a self-assessment get this rating
    DEFAULT_EXECUTION_RATE: int = 5

    # LLM / OpenAI (coaching commentary)
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_API_BASE: str | None = None
    OPENAI_MAX_TOKENS: int = 800
    OPENAI_TIMEOUT_SECONDS: int = 30

    # DeepSeek uses the OpenAI wire format and serves as fallback
    DEEPSEEK_ENABLED: bool = False
    DEEPSEEK_API_KEY: str | None = None
    DEEPSEEK_API_BASE: str = "https://api.deepseek.com"
    DEEPSEEK_MODEL: str = "deepseek-chat"
    DEEPSEEK_TIMEOUT_SECONDS: int = 30

    # Comma separated, tried in order
    AI_PROVIDERS: str = "openai,deepseek"
    AI_PREFERRED_PROVIDER: str | None = None

    # Market movers (Alpha Vantage TOP_GAINERS_LOSERS compatible)
    MARKET_DATA_API_KEY: str | None = None
    MARKET_DATA_URL: str = "https://www.alphavantage.co/query"
    MARKET_DATA_TIMEOUT_SECONDS: float = 10.0
    MARKET_MOVERS_LIMIT: int = 10

    # Screenshot host (ImgBB compatible)
    IMAGE_HOST_API_KEY: str | None = None
    IMAGE_HOST_URL: str = "https://api.imgbb.com/1/upload"
    IMAGE_HOST_TIMEOUT_SECONDS: float = 30.0
    IMAGE_UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return str(value or "INFO").upper()

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
