from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    url: str = Field(
        default="sqlite+aiosqlite:///./classclash.db", alias="DATABASE_URL"
    )
    echo: bool = Field(default=False, alias="DATABASE_ECHO")

    @computed_field
    def connection_string(self) -> str:
        return self.url


class GameSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    pin: str = Field(default="3630304", alias="GAME_PIN")
    question_count: int = Field(default=12, alias="GAME_QUESTION_COUNT")
    time_budget_sec: int = Field(default=60, alias="GAME_TIME_BUDGET_SEC")
    tick_sec: float = Field(default=1.0, alias="GAME_TICK_SEC")
    splash_delay_sec: float = Field(default=3.0, alias="GAME_SPLASH_DELAY_SEC")
    pin_error_sec: float = Field(default=1.0, alias="GAME_PIN_ERROR_SEC")
    loading_delay_sec: float = Field(default=2.0, alias="GAME_LOADING_DELAY_SEC")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="classclash", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=3000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    static_dir: Optional[str] = Field(default=None, alias="STATIC_DIR")
    api_base_url: str = Field(default="http://localhost:3000", alias="API_BASE_URL")

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    database: DatabaseSettings = Field(default_factory=lambda: DatabaseSettings())
    game: GameSettings = Field(default_factory=lambda: GameSettings())

    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")

    # Model provider selection: "google" or "openrouter"
    model_provider: str = Field(default="google", alias="MODEL_PROVIDER")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    openrouter_model: str = Field(
        default="google/gemini-2.5-flash", alias="OPENROUTER_MODEL"
    )


settings = Settings()
