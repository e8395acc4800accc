"""Pydantic models used across complaint-monitor configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


class SelectorSet(BaseModel):
    """CSS selectors describing the upstream listing markup.

    Kept as configuration so a layout change on the complaints site is fixed
    by editing ``global_config.yaml`` rather than the parser.
    """

    card: str = ".sc-1pe7b5t-0"
    title: str = '[data-testid="complaint-title"]'
    description: str = '[data-testid="complaint-description"]'
    status: str = '[data-testid="complaint-status"]'
    date: str = '[data-testid="complaint-creation-date"]'
    location: str = '[data-testid="complaint-location"]'
    link: str = "a"
    search_result: str = ".company-card"
    search_link: str = "a"

    @model_validator(mode="after")
    def _validate_non_empty(self) -> "SelectorSet":
        for name, value in self.model_dump().items():
            if not str(value).strip():
                raise ValueError(f"selector '{name}' cannot be empty")
        return self


class GlobalConfig(BaseModel):
    """Global controls for fetching, persistence and scheduling."""

    base_url: str = "https://www.reclameaqui.com.br"
    request_timeout: float = 10.0
    max_complaints: int = 20
    user_agent: str = DEFAULT_USER_AGENT
    user_agent_list: list[str] | Path | None = None
    accept_language: str = "pt-BR,pt;q=0.9"
    request_delay: tuple[float, float] = (0.0, 0.0)
    retry_on_fail: int = 0
    database_path: Path = Field(default=Path("data/complaints.db"))
    timezone: str = "America/Sao_Paulo"
    worker_threads: int = 8
    skip_overlapping_cycles: bool = True
    ledger_sync_seconds: int = 60
    default_query_limit: int = 50
    purge_days: int = 30
    selectors: SelectorSet = Field(default_factory=SelectorSet)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return value

    @field_validator("request_delay", mode="before")
    @classmethod
    def _coerce_delay(cls, value: Any) -> tuple[float, float]:
        if value in (None, ""):
            return (0.0, 0.0)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            low, high = float(value[0]), float(value[1])
            if low < 0 or high < 0:
                raise ValueError("Delay range values must be non-negative")
            if high < low:
                raise ValueError("Delay range upper bound must be >= lower bound")
            return (low, high)
        raise ValueError("Delay range expects a two-item list or tuple")

    @field_validator("database_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.max_complaints < 1:
            raise ValueError("max_complaints must be >= 1")
        if self.retry_on_fail < 0:
            raise ValueError("retry_on_fail must be >= 0")
        if self.worker_threads < 1:
            raise ValueError("worker_threads must be >= 1")
        if self.ledger_sync_seconds < 1:
            raise ValueError("ledger_sync_seconds must be >= 1")
        return self

    @model_validator(mode="after")
    def _apply_user_agents(self) -> "GlobalConfig":
        if isinstance(self.user_agent_list, Path):
            if not self.user_agent_list.exists():
                raise ValueError(f"UA file not found: {self.user_agent_list}")
            content = self.user_agent_list.read_text(encoding="utf-8").splitlines()
            self.user_agent_list = [line.strip() for line in content if line.strip()]
        return self

    def resolved_database_path(self, base_dir: Path) -> Path:
        """Return the SQLite path relative to the project root."""

        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path


__all__ = ["DEFAULT_USER_AGENT", "GlobalConfig", "SelectorSet"]
