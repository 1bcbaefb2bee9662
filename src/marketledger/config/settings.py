"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from marketledger.units import parse_amount

if TYPE_CHECKING:
    from marketledger.ledger.bets import BetLimits

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"

DEFAULT_MIN_BET = "0.001"
DEFAULT_MAX_BET = "10"
DEFAULT_EMERGENCY_TIMELOCK_SEC = 30 * 24 * 60 * 60


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        ledger: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        api: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.ledger = ledger or {}
        self.storage = storage or {}
        self.api = api or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            ledger=raw.get("ledger"),
            storage=raw.get("storage"),
            api=raw.get("api"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/ledger.duckdb")

    @property
    def min_bet(self) -> int:
        """Minimum bet in base units (config holds whole units as a string)."""
        return parse_amount(self.ledger.get("min_bet", DEFAULT_MIN_BET))

    @property
    def max_bet(self) -> int:
        return parse_amount(self.ledger.get("max_bet", DEFAULT_MAX_BET))

    @property
    def emergency_timelock_sec(self) -> int:
        return int(self.ledger.get("emergency_timelock_sec", DEFAULT_EMERGENCY_TIMELOCK_SEC))

    @property
    def escrow_account(self) -> str:
        return self.ledger.get("escrow_account", "escrow")

    @property
    def api_host(self) -> str:
        return self.api.get("host", "127.0.0.1")

    @property
    def api_port(self) -> int:
        return int(self.api.get("port", 8000))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)

    def bet_limits(self) -> BetLimits:
        from marketledger.ledger.bets import BetLimits

        return BetLimits(min_bet=self.min_bet, max_bet=self.max_bet)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
