"""Timestamped status lines for the analyzer, written to stderr or a log file."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path


_LOG_FILE: Path | None = None


def log(verbose: bool, message: str) -> None:
    if verbose:
        _emit(None, message)


def log_debug(debug: bool, message: str) -> None:
    if debug:
        _emit("DEBUG", message)


def log_warning(message: str) -> None:
    _emit("WARN", message)


def set_log_file(path: str | Path | None) -> None:
    """Append later lines to ``path``; ``None`` sends them back to stderr.

    A missing parent directory is created, so ``--log-file logs/esp.log``
    works on a fresh checkout.
    """
    global _LOG_FILE
    if not path:
        _LOG_FILE = None
        return
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _LOG_FILE = log_path


def _emit(tag: str | None, message: str) -> None:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    prefix = f"[{stamp} UTC][{tag}]" if tag else f"[{stamp} UTC]"
    line = f"{prefix} {message}\n"
    if _LOG_FILE is not None:
        with _LOG_FILE.open("a", encoding="utf-8") as handle:
            handle.write(line)
    else:
        sys.stderr.write(line)
