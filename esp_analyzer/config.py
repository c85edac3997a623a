"""Configuration helpers for the ESP analyzer."""

import os
from pathlib import Path
from dataclasses import dataclass


DEFAULT_RELIABLE_CONFIDENCE = 0.6
ENV_PREFIX = "ESP_"


@dataclass(frozen=True)
class AnalyzerConfig:
    provider_table_path: str | None = None
    reliable_confidence: float = DEFAULT_RELIABLE_CONFIDENCE
    log_file: str | None = None
    debug: bool = False

    @staticmethod
    def from_env() -> "AnalyzerConfig":
        _load_dotenv()
        return AnalyzerConfig(
            provider_table_path=os.getenv("ESP_PROVIDER_TABLE") or None,
            reliable_confidence=_parse_threshold(os.getenv("ESP_RELIABLE_CONFIDENCE")),
            log_file=os.getenv("ESP_LOG_FILE") or None,
            debug=os.getenv("ESP_DEBUG", "false").lower() in {"1", "true", "yes"},
        )


def _parse_threshold(raw: str | None) -> float:
    if raw is None:
        return DEFAULT_RELIABLE_CONFIDENCE
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_RELIABLE_CONFIDENCE
    if not 0.0 <= value <= 1.0:
        return DEFAULT_RELIABLE_CONFIDENCE
    return value


def _load_dotenv(env_path: Path = Path(".env")) -> None:
    """Copy ``ESP_*`` settings from a .env file into the environment.

    Other keys are left alone and variables already set in the environment win.
    """
    if not env_path.exists():
        return
    try:
        content = env_path.read_text(encoding="utf-8")
    except OSError:
        return

    for line in content.splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key.startswith(ENV_PREFIX) or key in os.environ:
            continue
        os.environ[key] = _dotenv_value(value.strip())


def _dotenv_value(raw: str) -> str:
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
        return raw[1:-1]
    # Unquoted values may carry a trailing " # comment".
    return raw.split(" #", 1)[0].rstrip()
