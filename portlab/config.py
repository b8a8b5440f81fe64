"""PortLab — application configuration.

Loads .env variables into a typed config object.  Every variable is
optional; malformed values are rejected on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    risk_free_rate: float
    rebalance_threshold: float
    ma_period: int
    cooldown_days: int
    cache_ttl_seconds: float
    weight_step: int
    horizons: tuple[int, ...]
    apply_dividend_yields: bool
    log_level: str
    health_port: int

    @property
    def weights(self) -> tuple[int, ...]:
        """Asset-1 weight grid from 0 to 100 inclusive."""
        return tuple(range(0, 101, self.weight_step))


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the variable when a value
    cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    cfg = Config(
        risk_free_rate=_env_float("RISK_FREE_RATE", "0.02"),
        rebalance_threshold=_env_float("REBALANCE_THRESHOLD", "0.03"),
        ma_period=_env_int("MA_PERIOD", "200"),
        cooldown_days=_env_int("COOLDOWN_DAYS", "2"),
        cache_ttl_seconds=_env_float("CACHE_TTL_SECONDS", "86400"),
        weight_step=_env_int("WEIGHT_STEP", "5"),
        horizons=_env_int_list("HORIZONS", "1,3,5,10"),
        apply_dividend_yields=_env_bool("APPLY_DIVIDEND_YIELDS", "false"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        health_port=_env_int("HEALTH_PORT", "8080"),
    )

    if cfg.ma_period < 1:
        raise ValueError(f"MA_PERIOD must be >= 1, got {cfg.ma_period}")
    if cfg.cooldown_days < 0:
        raise ValueError(f"COOLDOWN_DAYS must be >= 0, got {cfg.cooldown_days}")
    if not 0 < cfg.weight_step <= 100:
        raise ValueError(f"WEIGHT_STEP must be in 1..100, got {cfg.weight_step}")
    if cfg.cache_ttl_seconds <= 0:
        raise ValueError(
            f"CACHE_TTL_SECONDS must be positive, got {cfg.cache_ttl_seconds}"
        )
    return cfg


# ── Parsing helpers ──────────────────────────────────────────────────────


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_int_list(name: str, default: str) -> tuple[int, ...]:
    raw = os.environ.get(name, default)
    try:
        values = tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ValueError(
            f"{name} must be comma-separated integers, got {raw!r}"
        ) from exc
    if not values or any(v <= 0 for v in values):
        raise ValueError(f"{name} must list positive integers, got {raw!r}")
    return values


def _env_bool(name: str, default: str) -> bool:
    raw = os.environ.get(name, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")
