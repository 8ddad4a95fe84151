"""Configuration loading and validation."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from find_reviewer.service.errors import InvalidConfigError
from find_reviewer.service.logging import Loggers

logger = Loggers.settings()

CONFIG_FILE_NAME = "find-reviewer.json"

SELECTION_POLICIES = ("fifo", "random")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Main application settings, immutable after load."""

    # Matching
    address: str = "localhost:3000"
    timeout_in_s: int = 30
    wip_limit: int = 5

    # Service
    log_level: str = "INFO"
    json_logs: bool = True
    log_file: str = ""
    sweep_interval_s: float = 1.0
    static_dir: str = "www"
    users_file: str = "users.yaml"
    selection_policy: str = "fifo"

    @property
    def host(self) -> str:
        return split_address(self.address)[0]

    @property
    def port(self) -> int:
        return split_address(self.address)[1]


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise InvalidConfigError("address", address, "expected host:port")
    try:
        return host, int(port)
    except ValueError:
        raise InvalidConfigError("address", address, "port must be an integer") from None


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.environ.get(key, "").lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    value = os.environ.get(key)
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get int environment variable."""
    value = os.environ.get(key)
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def _load_json_config(path: Path) -> dict[str, Any]:
    """
    Read the JSON configuration file.

    A missing or unreadable file yields an empty mapping so that defaults
    apply. A file that exists but does not parse is an error and is never
    overwritten.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        logger.info(
            f"Could not read {path}, file will be created",
            event_type="config_missing",
            path=str(path),
        )
        return {}
    except OSError as e:
        logger.warning(
            f"Could not read {path}: {e}",
            event_type="config_unreadable",
            path=str(path),
        )
        return {}

    try:
        config = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(str(path), "<file>", f"could not parse: {e}") from e

    if not isinstance(config, dict):
        raise InvalidConfigError(str(path), type(config).__name__, "expected a JSON object")

    known = {f.name for f in fields(Settings)}
    for key in sorted(set(config) - known):
        logger.warning(
            "Unknown configuration key ignored",
            event_type="config_unknown_key",
            key=key,
        )
    return {k: v for k, v in config.items() if k in known}


def _write_json_config(path: Path, config: dict[str, Any]) -> None:
    """Persist file values completed with defaults. Env overrides are not saved."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.warning(
            f"Could not write {path}: {e}",
            event_type="config_write_failed",
            path=str(path),
        )


def _coerce(key: str, value: Any, kind: type) -> Any:
    """
    Check a file value against the field's type.

    Integers are accepted for float fields; nothing else is converted.
    """
    if isinstance(value, bool) and kind is not bool:
        raise InvalidConfigError(key, value, f"expected {kind.__name__}")
    if kind is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, kind):
        expected = "true or false" if kind is bool else kind.__name__
        raise InvalidConfigError(key, value, f"expected {expected}")
    return value


def load_settings(
    config_path: Path | str | None = None,
    dotenv_path: Path | str | None = None,
    persist: bool = True,
) -> Settings:
    """
    Load settings from the JSON config file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (find-reviewer.json)
    3. Defaults

    Args:
        config_path: Path to the config file (default: ./find-reviewer.json)
        dotenv_path: Path to .env file (default: ./.env)
        persist: Write file values completed with defaults back to the config file

    Returns:
        Loaded Settings object
    """
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        load_dotenv()

    path = Path(config_path or _get_env("FIND_REVIEWER_CONFIG", CONFIG_FILE_NAME))
    file_config = _load_json_config(path)

    defaults = Settings()
    kinds = {"str": str, "int": int, "float": float, "bool": bool}
    values = {
        f.name: _coerce(f.name, file_config[f.name], kinds[f.type])
        for f in fields(Settings)
        if f.name in file_config
    }
    merged = {f.name: values.get(f.name, getattr(defaults, f.name)) for f in fields(Settings)}

    settings = Settings(
        address=_get_env("FIND_REVIEWER_ADDRESS", merged["address"]),
        timeout_in_s=_get_env_int("FIND_REVIEWER_TIMEOUT_IN_S", merged["timeout_in_s"]),
        wip_limit=_get_env_int("FIND_REVIEWER_WIP_LIMIT", merged["wip_limit"]),
        log_level=_get_env("LOG_LEVEL", merged["log_level"]),
        json_logs=_get_env_bool("FIND_REVIEWER_JSON_LOGS", merged["json_logs"]),
        log_file=_get_env("FIND_REVIEWER_LOG_FILE", merged["log_file"]),
        sweep_interval_s=_get_env_float("FIND_REVIEWER_SWEEP_INTERVAL_S", merged["sweep_interval_s"]),
        static_dir=_get_env("FIND_REVIEWER_STATIC_DIR", merged["static_dir"]),
        users_file=_get_env("FIND_REVIEWER_USERS_FILE", merged["users_file"]),
        selection_policy=_get_env("FIND_REVIEWER_SELECTION_POLICY", merged["selection_policy"]),
    )

    if settings.log_level.upper() not in LOG_LEVELS:
        raise InvalidConfigError("log_level", settings.log_level, f"expected one of {list(LOG_LEVELS)}")

    if persist:
        _write_json_config(path, merged)

    return settings


def validate_settings(settings: Settings) -> list[str]:
    """
    Validate settings and return list of warnings/errors.

    Returns:
        List of validation messages (empty if all OK)
    """
    issues: list[str] = []

    try:
        split_address(settings.address)
    except InvalidConfigError as e:
        issues.append(f"ERROR: {e}")

    if settings.wip_limit < 1:
        issues.append(f"ERROR: wip_limit must be >= 1, got {settings.wip_limit}")

    if settings.timeout_in_s < 0:
        issues.append(f"ERROR: timeout_in_s must be >= 0, got {settings.timeout_in_s}")

    if settings.sweep_interval_s <= 0:
        issues.append(f"ERROR: sweep_interval_s must be > 0, got {settings.sweep_interval_s}")
    elif settings.sweep_interval_s > settings.timeout_in_s > 0:
        issues.append(
            f"WARNING: sweep_interval_s ({settings.sweep_interval_s}) is longer than "
            f"timeout_in_s ({settings.timeout_in_s}), reviews will outlive their timeout"
        )

    if settings.selection_policy not in SELECTION_POLICIES:
        issues.append(
            f"ERROR: selection_policy must be one of {list(SELECTION_POLICIES)}, "
            f"got {settings.selection_policy!r}"
        )

    return issues

