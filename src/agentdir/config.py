"""Run configuration for directory scans.

ScanConfig holds the per-run knobs (domain cap, timeouts, throttle interval,
probe toggles). ``ScanConfig.from_env()`` reads overrides from AGENTDIR_*
environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from agentdir import __version__

ENV_MAX_DOMAINS_PER_RUN = "AGENTDIR_MAX_DOMAINS_PER_RUN"
ENV_REQUEST_TIMEOUT = "AGENTDIR_REQUEST_TIMEOUT"
ENV_MIN_REQUEST_INTERVAL = "AGENTDIR_MIN_REQUEST_INTERVAL"
ENV_CHECK_WELL_KNOWN = "AGENTDIR_CHECK_WELL_KNOWN"
ENV_CHECK_HOMEPAGE = "AGENTDIR_CHECK_HOMEPAGE"
ENV_USER_AGENT = "AGENTDIR_USER_AGENT"
ENV_SEEDS_PATH = "AGENTDIR_SEEDS_PATH"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"

DEFAULT_MAX_DOMAINS_PER_RUN = 200
DEFAULT_REQUEST_TIMEOUT_SECONDS = 4.5
DEFAULT_MIN_REQUEST_INTERVAL_SECONDS = 1.0
MANIFEST_MAX_BYTES = 64 * 1024
HOMEPAGE_MAX_BYTES = 256 * 1024
DEFAULT_USER_AGENT = f"agentdir-scanner/{__version__}"
DEFAULT_SEEDS_PATH = Path("data") / "webmcp_seeds.json"

_TRUTHY = ("true", "1", "yes", "on")
_FALSY = ("false", "0", "no", "off")


class ScanConfig(BaseModel):
    """Knobs for one directory scan run."""

    max_domains_per_run: int = Field(
        default=DEFAULT_MAX_DOMAINS_PER_RUN, ge=1, description="Cap on domains probed per run"
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0, description="Per-request timeout"
    )
    min_request_interval_seconds: float = Field(
        default=DEFAULT_MIN_REQUEST_INTERVAL_SECONDS,
        ge=0,
        description="Minimum spacing between outbound requests",
    )
    manifest_max_bytes: int = Field(default=MANIFEST_MAX_BYTES, gt=0)
    homepage_max_bytes: int = Field(default=HOMEPAGE_MAX_BYTES, gt=0)
    check_well_known: bool = Field(default=True, description="Run the manifest probe")
    check_homepage: bool = Field(default=True, description="Run the homepage hint probe")
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    @classmethod
    def from_env(cls) -> ScanConfig:
        """Build a config from AGENTDIR_* environment variables.

        Raises:
            ValueError: If a variable holds a value that cannot be parsed.
        """
        values: dict[str, object] = {}
        raw = os.environ.get(ENV_MAX_DOMAINS_PER_RUN)
        if raw:
            values["max_domains_per_run"] = int(raw)
        raw = os.environ.get(ENV_REQUEST_TIMEOUT)
        if raw:
            values["request_timeout_seconds"] = float(raw)
        raw = os.environ.get(ENV_MIN_REQUEST_INTERVAL)
        if raw:
            values["min_request_interval_seconds"] = float(raw)
        for env_name, field_name in (
            (ENV_CHECK_WELL_KNOWN, "check_well_known"),
            (ENV_CHECK_HOMEPAGE, "check_homepage"),
        ):
            raw = os.environ.get(env_name)
            if raw:
                values[field_name] = _parse_bool(env_name, raw)
        raw = os.environ.get(ENV_USER_AGENT)
        if raw:
            values["user_agent"] = raw.strip()
        return cls.model_validate(values)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"Unknown {name}={raw!r}. Use true/false.")


def seeds_path_from_env() -> Path:
    """Return the seeds file path from AGENTDIR_SEEDS_PATH or the default."""
    raw = os.environ.get(ENV_SEEDS_PATH, "").strip()
    return Path(raw) if raw else DEFAULT_SEEDS_PATH


def github_token_from_env() -> str | None:
    """Return GITHUB_TOKEN if set and non-empty."""
    token = os.environ.get(ENV_GITHUB_TOKEN, "").strip()
    return token or None
