"""Policy constants for the resolver, dedup cache and pledge poller.

Every value has a default matching the behaviour observed in production.
Overrides are resolved from environment variables first, then from
~/.lightning-intents/config.json (or the file named by
LIGHTNING_INTENTS_CONFIG).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path

from lightning_intents.exceptions import ConfigError
from lightning_intents.units import DEFAULT_MAX_SENDABLE_SATS, DEFAULT_MIN_SENDABLE_SATS

_CONFIG_PATH = Path.home() / ".lightning-intents" / "config.json"
_ENV_PREFIX = "LIGHTNING_INTENTS_"


@dataclass(frozen=True)
class Settings:
    """Tunable policy for payment-intent flows.

    Args:
        default_min_sendable_sats: Lower bound when the LNURL endpoint omits minSendable.
        default_max_sendable_sats: Upper bound when the LNURL endpoint omits maxSendable.
        dedupe_window_seconds: How long a (sender, recipient) notification is suppressed.
        dedupe_high_water_mark: Entry count above which the dedup cache sweeps expired entries.
        fast_poll_window_ms: Time after the first status fetch during which polling is fast.
        slow_poll_window_ms: Time after the fast window during which polling is slow.
        fast_poll_interval_ms: Interval between fetches in the fast window.
        slow_poll_interval_ms: Interval between fetches in the slow window.
        http_timeout_seconds: Transport timeout handed to httpx.
        pledge_api_base_url: Base URL of the pledge API.
    """

    default_min_sendable_sats: int = DEFAULT_MIN_SENDABLE_SATS
    default_max_sendable_sats: int = DEFAULT_MAX_SENDABLE_SATS
    dedupe_window_seconds: int = 24 * 60 * 60
    dedupe_high_water_mark: int = 10_000
    fast_poll_window_ms: int = 2 * 60 * 1000
    slow_poll_window_ms: int = 10 * 60 * 1000
    fast_poll_interval_ms: int = 3_000
    slow_poll_interval_ms: int = 10_000
    http_timeout_seconds: float = 10.0
    pledge_api_base_url: str = ""

    @property
    def poll_deadline_ms(self) -> int:
        """Elapsed time after which a still-pending pledge stops being polled."""
        return self.fast_poll_window_ms + self.slow_poll_window_ms


DEFAULT_SETTINGS = Settings()


def _is_real_value(val: str | None) -> bool:
    """Check if an env var value is real (not an unexpanded placeholder)."""
    if not val:
        return False
    return not val.startswith("${")


def _config_path() -> Path:
    override = os.environ.get(_ENV_PREFIX + "CONFIG", "")
    if _is_real_value(override):
        return Path(override)
    return _CONFIG_PATH


def _load_config(path: Path) -> dict:
    """Load the JSON config file if it exists."""
    try:
        if path.exists():
            data = json.loads(path.read_text())
            if isinstance(data, dict):
                return data
    except (json.JSONDecodeError, OSError):
        pass
    return {}


def _coerce(name: str, kind: type, raw: object) -> object:
    if isinstance(raw, kind) and not isinstance(raw, bool):
        return raw
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise ConfigError(name, raw) from None


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings from env vars (LIGHTNING_INTENTS_<FIELD>) and the config file.

    Resolution order for each field: env var, then config file key (the
    field name), then the built-in default. Placeholder env values such as
    "${FOO}" are skipped.

    Raises:
        ConfigError: If a value cannot be converted to the field's type.
    """
    file_config = _load_config(path or _config_path())
    overrides: dict[str, object] = {}

    for f in fields(Settings):
        kind = type(getattr(DEFAULT_SETTINGS, f.name))
        env_val = os.environ.get(_ENV_PREFIX + f.name.upper(), "")
        if _is_real_value(env_val):
            overrides[f.name] = _coerce(f.name, kind, env_val)
        elif f.name in file_config:
            overrides[f.name] = _coerce(f.name, kind, file_config[f.name])

    return Settings(**overrides)
