from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Rutas
    DB_PATH: Path = Field(default=Path("./data/evalq.db"))
    STAGING_DIR: Path = Field(default=Path.home() / "decoded_notebooks")
    OUTPUT_DIR: Path = Field(default=Path.home() / "output")
    INPUT_SUFFIX: str = ".ipynb"
    OUTPUT_SUFFIX: str = "_output.txt"

    # Evaluador externo: se invoca como `<EVALUATOR_CMD> <ruta-del-archivo>`
    EVALUATOR_CMD: str = "./run_evaluator.sh"
    EVALUATOR_TIMEOUT_SECS: float = 300.0

    # Worker
    POLL_INTERVAL_SECS: float = 3.0
    PASS_THRESHOLD: float = 80.0

    # Panel/API
    PANEL_HOST: str = "127.0.0.1"
    PANEL_PORT: int = 8080
    PANEL_TOKEN: str | None = None

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Field(default=Path("./logs"))


settings = Settings()
