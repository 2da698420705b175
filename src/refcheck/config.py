"""Configuration for the reference checker."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any

import yaml

from refcheck.batch import DEFAULT_DELAY
from refcheck.history import DEFAULT_HISTORY_LIMIT
from refcheck.utils import DEFAULT_USER_AGENT

NUMERIC_FIELDS = {
    "delay": float,
    "timeout": float,
    "retries": int,
    "crossref_rows": int,
    "history_limit": int,
}


def _coerce(name: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool):
        raise ValueError(f"Config key '{name}' must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ValueError(f"Config key '{name}' must be a number, got {value!r}") from None


@dataclass
class VerifierConfig:
    """Settings for a checking run.

    Attributes:
        delay: Pause in seconds between consecutive references
        timeout: HTTP request timeout in seconds
        retries: Extra attempts after a transient HTTP failure
        crossref_rows: Number of ranked Crossref candidates to inspect
        user_agent: User-Agent header sent to the APIs
        mailto: Contact address for the Crossref polite pool
        google_books_api_key: Optional Google Books API key
        history_path: JSON file holding the query history
        history_limit: Number of history entries to keep
        rate_limits: Requests per minute per service, e.g. {"crossref": 50}
    """

    delay: float = DEFAULT_DELAY
    timeout: float = 20.0
    retries: int = 0
    crossref_rows: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    mailto: str | None = None
    google_books_api_key: str | None = None
    history_path: str = "~/.refcheck_history.json"
    history_limit: int = DEFAULT_HISTORY_LIMIT
    rate_limits: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerifierConfig:
        """Create config from a dictionary (e.g., loaded from YAML).

        Numeric values are coerced, so ``history_limit: "10"`` is accepted.

        Raises:
            ValueError: If the dictionary contains unknown keys or a value
                of the wrong type
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        values = dict(data)
        for name, value in values.items():
            if name in NUMERIC_FIELDS:
                values[name] = _coerce(name, value, NUMERIC_FIELDS[name])
        if "rate_limits" in values:
            limits = values["rate_limits"] or {}
            if not isinstance(limits, dict):
                raise ValueError("Config key 'rate_limits' must be a mapping of service to requests per minute")
            values["rate_limits"] = {str(k): _coerce(f"rate_limits.{k}", v, int) for k, v in limits.items()}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary for serialization."""
        return {
            "delay": self.delay,
            "timeout": self.timeout,
            "retries": self.retries,
            "crossref_rows": self.crossref_rows,
            "user_agent": self.user_agent,
            "mailto": self.mailto,
            "history_path": self.history_path,
            "history_limit": self.history_limit,
            "rate_limits": dict(self.rate_limits),
        }

    def apply_env(self, environ: dict[str, str] | None = None) -> VerifierConfig:
        """Fill unset credentials from REFCHECK_MAILTO and GOOGLE_BOOKS_API_KEY."""
        env = os.environ if environ is None else environ
        self.mailto = self.mailto or env.get("REFCHECK_MAILTO") or None
        self.google_books_api_key = self.google_books_api_key or env.get("GOOGLE_BOOKS_API_KEY") or None
        return self


def load_config(path: str) -> VerifierConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        VerifierConfig built from the file contents

    Raises:
        ValueError: If the file is not a mapping or has unknown keys
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return VerifierConfig.from_dict(data)
