"""Validation and runtime guardrails."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from .errors import ConfigError, ValidationError


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def require_string(value: Any, message: str) -> str:
    """Return value if it is a non-empty string, else raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


def clamp_limit(value: Any, *, default: int, minimum: int, maximum: int) -> int:
    """Coerce a caller-supplied page size into [minimum, maximum]."""
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("limit must be a number") from exc
    return min(max(number, minimum), maximum)


def validate_runtime_constraints(
    *,
    superadmin_email: str,
    provider_wait_seconds: int,
    provider_timeout: float,
    enrichment_timeout: float,
    enrichment_max_candidates: int,
    batch_size: int,
    max_batch_size: int,
) -> None:
    """Validate CLI/runtime configuration and raise ConfigError on invalid values."""
    if "@" not in (superadmin_email or ""):
        raise ConfigError("--superadmin-email must be an email address.")
    if provider_wait_seconds < 0:
        raise ConfigError("provider wait seconds must be >= 0.")
    if provider_timeout <= 0 or enrichment_timeout <= 0:
        raise ConfigError("timeouts must be > 0.")
    if provider_timeout < provider_wait_seconds:
        raise ConfigError("provider timeout cannot be shorter than the provider wait.")
    if enrichment_max_candidates < 0:
        raise ConfigError("enrichment candidate cap must be >= 0.")
    if not 1 <= batch_size <= max_batch_size:
        raise ConfigError(f"batch size must be between 1 and {max_batch_size}.")
