from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final

from otpgen.core.config.settings import BASE_DIR, Settings, get_settings

logger = logging.getLogger(__name__)

_REDACT_VALUE: Final[str] = "***"


@dataclass(frozen=True, slots=True)
class StartupEnvSnapshot:
    values: dict[str, str | None]

    @classmethod
    def from_process_env(cls) -> StartupEnvSnapshot:
        values: dict[str, str | None] = {}
        for key, value in os.environ.items():
            if key.startswith("OTPGEN_"):
                values[key] = value
        return cls(values=values)


def log_startup_config() -> None:
    settings = get_settings()
    if not settings.startup_log_config:
        return

    env_files = (BASE_DIR / ".env", BASE_DIR / ".env.local")
    env_file_status = ", ".join(f"{path.name}={'present' if path.exists() else 'missing'}" for path in env_files)
    logger.info("Startup config: env_files=[%s]", env_file_status)
    _log_env_snapshot(StartupEnvSnapshot.from_process_env())
    _log_settings(settings)


def _log_env_snapshot(snapshot: StartupEnvSnapshot) -> None:
    items = sorted(snapshot.values.items(), key=lambda kv: kv[0])
    logger.info("Startup env snapshot (allowlist):")
    for key, value in items:
        if value is None:
            logger.info("  %s=<unset>", key)
            continue
        logger.info("  %s=%s", key, _redact_env_value(key, value))


def _log_settings(settings: Settings) -> None:
    # `mode="json"` converts Path -> str.
    data = settings.model_dump(mode="json")
    items = sorted(data.items(), key=lambda kv: kv[0])
    logger.info("Startup settings snapshot:")
    for key, value in items:
        logger.info("  %s=%s", key, value)


def _redact_env_value(key: str, value: str) -> str:
    upper = key.upper()
    if upper.endswith("_FILE"):
        return value
    if any(token in upper for token in ("SECRET", "PASSWORD", "TOKEN")):
        return _REDACT_VALUE
    if upper.endswith("_KEY"):
        return _REDACT_VALUE
    return value
