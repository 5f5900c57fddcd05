# app/config.py
"""
Centralized configuration management with startup validation.

Every setting is OPTIONAL with a safe default; invalid values fall back to
the default and are reported as warnings in the startup log.
"""
import logging
import math
import os
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "battle-nest-loyalty"
SERVICE_VERSION = "0.1.0"

# Default values
DEFAULT_MAX_REQUEST_SIZE_BYTES = 65_536  # 64KB
MIN_REQUEST_SIZE_BYTES = 1024  # 1KB minimum
DEFAULT_LOYALTY_API_BASE_URL = "http://localhost:5000"
DEFAULT_LOYALTY_API_TIMEOUT = 10
DEFAULT_LOYALTY_CACHE_TTL_SECONDS = 300
DEFAULT_LOYALTY_CLIENT_CACHE_SIZE = 256  # session clients kept in memory
DEFAULT_PLATFORM_FEE_PERCENT = 5.0
DEFAULT_MIN_WITHDRAWAL_PAISE = 5000  # Rs.50

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"

    # Security settings
    max_request_size_bytes: int = DEFAULT_MAX_REQUEST_SIZE_BYTES

    # Loyalty profile API
    loyalty_api_base_url: str = DEFAULT_LOYALTY_API_BASE_URL
    loyalty_api_timeout: int = DEFAULT_LOYALTY_API_TIMEOUT
    loyalty_cache_ttl_seconds: int = DEFAULT_LOYALTY_CACHE_TTL_SECONDS
    loyalty_client_cache_size: int = DEFAULT_LOYALTY_CLIENT_CACHE_SIZE

    # Fee estimation defaults
    default_platform_fee_percent: float = DEFAULT_PLATFORM_FEE_PERCENT
    min_withdrawal_paise: int = DEFAULT_MIN_WITHDRAWAL_PAISE

    # Warnings collected during config load
    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_int_env(
    name: str, default: int, min_value: Optional[int] = None
) -> tuple[int, Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = int(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid integer; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def _parse_float_env(
    name: str, default: float, min_value: float, max_value: float
) -> tuple[float, Optional[str]]:
    """Parse a bounded float environment variable. Same contract as _parse_int_env."""
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = float(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid number; using default {default}"
        return default, warning

    if math.isnan(value) or value < min_value or value > max_value:
        warning = (
            f"{name}={raw} is outside {min_value}-{max_value}; using default {default}"
        )
        return default, warning

    return value, None


def load_config(fail_fast: bool = True) -> AppConfig:
    """
    Load and validate application configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on critical issues.
                   If False, collect warnings and continue.

    Returns:
        AppConfig instance with validated configuration.

    Raises:
        ConfigurationError: If LOYALTY_API_BASE_URL is not an http(s) URL
                           and fail_fast is True.
    """
    warnings = []

    environment = os.environ.get("ENVIRONMENT", "development")

    max_request_size, size_warning = _parse_int_env(
        "MAX_REQUEST_SIZE_BYTES",
        DEFAULT_MAX_REQUEST_SIZE_BYTES,
        min_value=MIN_REQUEST_SIZE_BYTES,
    )
    if size_warning:
        warnings.append(size_warning)

    base_url = os.environ.get("LOYALTY_API_BASE_URL", DEFAULT_LOYALTY_API_BASE_URL).strip()
    if not base_url.startswith(("http://", "https://")):
        message = f"LOYALTY_API_BASE_URL='{base_url}' must start with http:// or https://"
        if fail_fast:
            raise ConfigurationError(message)
        warnings.append(f"{message}; using default {DEFAULT_LOYALTY_API_BASE_URL}")
        base_url = DEFAULT_LOYALTY_API_BASE_URL

    timeout, timeout_warning = _parse_int_env(
        "LOYALTY_API_TIMEOUT", DEFAULT_LOYALTY_API_TIMEOUT, min_value=1
    )
    if timeout_warning:
        warnings.append(timeout_warning)

    cache_ttl, ttl_warning = _parse_int_env(
        "LOYALTY_CACHE_TTL_SECONDS", DEFAULT_LOYALTY_CACHE_TTL_SECONDS, min_value=0
    )
    if ttl_warning:
        warnings.append(ttl_warning)

    client_cache_size, client_cache_warning = _parse_int_env(
        "LOYALTY_CLIENT_CACHE_SIZE", DEFAULT_LOYALTY_CLIENT_CACHE_SIZE, min_value=1
    )
    if client_cache_warning:
        warnings.append(client_cache_warning)

    fee_percent, fee_warning = _parse_float_env(
        "DEFAULT_PLATFORM_FEE_PERCENT", DEFAULT_PLATFORM_FEE_PERCENT, 0.0, 100.0
    )
    if fee_warning:
        warnings.append(fee_warning)

    min_withdrawal, min_warning = _parse_int_env(
        "MIN_WITHDRAWAL_PAISE", DEFAULT_MIN_WITHDRAWAL_PAISE, min_value=0
    )
    if min_warning:
        warnings.append(min_warning)

    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        max_request_size_bytes=max_request_size,
        loyalty_api_base_url=base_url,
        loyalty_api_timeout=timeout,
        loyalty_cache_ttl_seconds=cache_ttl,
        loyalty_client_cache_size=client_cache_size,
        default_platform_fee_percent=fee_percent,
        min_withdrawal_paise=min_withdrawal,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs actual secret values - only boolean presence flags.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"max_request_size_bytes={config.max_request_size_bytes} "
        f"loyalty_api_base_url={config.loyalty_api_base_url} "
        f"loyalty_api_timeout={config.loyalty_api_timeout} "
        f"loyalty_cache_ttl_seconds={config.loyalty_cache_ttl_seconds} "
        f"default_platform_fee_percent={config.default_platform_fee_percent} "
        f"loyalty_client_cache_size={config.loyalty_client_cache_size} "
        f"min_withdrawal_paise={config.min_withdrawal_paise}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # "token_present=True" is fine, "token=abc123" is not
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false)"
        if re.search(pattern, snapshot_lower):
            return False

    return True
