"""JSON persistence for user-facing runtime state.

Loading never aborts startup: missing keys, wrong types and corrupt files all
degrade to defaults, with a user-facing notice when the file itself was bad.
"""

from __future__ import annotations

import json
import logging
import math
import time
from contextlib import suppress
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 80
DEFAULT_REST_INTERVAL_S = 30.0
DEFAULT_ICY_INTERVAL_S = 15.0


@dataclass(frozen=True)
class AppState:
    """Persisted settings loaded at startup and updated while running."""

    station_name: str | None = None
    volume: int = DEFAULT_VOLUME
    playback_backend: str = "vlc"
    rest_interval_s: float = DEFAULT_REST_INTERVAL_S
    icy_interval_s: float = DEFAULT_ICY_INTERVAL_S
    log_level: str = "INFO"


def _coerce_state(data: dict[str, Any]) -> AppState:
    """Build an `AppState` from an untyped JSON object, field by field."""

    def _str_or_none(value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value
        return None

    def _str_or_default(value: Any, default: str) -> str:
        return value if isinstance(value, str) else default

    def _volume(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return DEFAULT_VOLUME
        if not math.isfinite(value):
            return DEFAULT_VOLUME
        return max(0, min(100, int(value)))

    def _positive_float(value: Any, default: float) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        normalized = float(value)
        if not math.isfinite(normalized) or normalized <= 0:
            return default
        return normalized

    return AppState(
        station_name=_str_or_none(data.get("station_name")),
        volume=_volume(data.get("volume")),
        playback_backend=_str_or_default(data.get("playback_backend"), "vlc"),
        rest_interval_s=_positive_float(
            data.get("rest_interval_s"), DEFAULT_REST_INTERVAL_S
        ),
        icy_interval_s=_positive_float(
            data.get("icy_interval_s"), DEFAULT_ICY_INTERVAL_S
        ),
        log_level=_str_or_default(data.get("log_level"), "INFO"),
    )


def _reset_notice(cause: str, step: str) -> str:
    return f"Settings were reset to defaults.\nLikely cause: {cause}.\nNext step: {step}."


def load_state_with_notice(path: Path) -> tuple[AppState, str | None]:
    """Load state and return an optional user-facing notice."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("State file missing at %s; using defaults.", path)
        return AppState(), None
    except OSError as exc:
        logger.warning("Failed to read state file %s: %s; using defaults.", path, exc)
        return AppState(), _reset_notice(
            "state file is unreadable due to permissions or IO issues",
            f"verify access to '{path}' and restart",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("State file at %s is invalid JSON; using defaults.", path)
        return AppState(), _reset_notice(
            "state file is corrupt or partially written",
            f"remove or repair '{path}' and restart",
        )

    if not isinstance(data, dict):
        logger.warning("State file at %s is not a JSON object; using defaults.", path)
        return AppState(), _reset_notice(
            "state file format is invalid for this app version",
            f"remove '{path}' and restart",
        )

    return _coerce_state(data), None


def load_state(path: Path) -> AppState:
    """Load the application state from disk, falling back to defaults."""
    state, _notice = load_state_with_notice(path)
    return state


def save_state(path: Path, state: AppState) -> None:
    """Persist state atomically via write-then-replace.

    The replace is retried briefly because Windows reports sharing violations
    while another process (antivirus, indexer) holds the target open.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
    payload = json.dumps(asdict(state), indent=2, sort_keys=True)
    delay_s = 0.02
    try:
        tmp_path.write_text(payload, encoding="utf-8")
        for attempt in range(4):
            try:
                tmp_path.replace(path)
                return
            except OSError as exc:
                if attempt >= 3 or not _is_transient_replace_error(exc):
                    raise
                time.sleep(delay_s)
                delay_s = min(0.25, delay_s * 2.0)
    finally:
        with suppress(OSError):
            tmp_path.unlink()


def _is_transient_replace_error(exc: OSError) -> bool:
    if getattr(exc, "winerror", None) in {2, 5, 32}:
        return True
    return getattr(exc, "errno", None) in {13, 16}
