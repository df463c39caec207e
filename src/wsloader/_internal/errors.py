"""Custom exception hierarchy for wsloader."""

from __future__ import annotations


class WsLoaderError(Exception):
    """Base exception for all wsloader errors.

    Anything raised deliberately by the harness derives from this class, so
    callers such as the CLI can turn any of them into a clean exit with a
    single except clause.
    """


class ConfigError(WsLoaderError):
    """Raised when the run configuration is invalid or missing.

    Examples:
        - The TOML document cannot be read or parsed.
        - ``clients`` is zero or ``duration_secs`` is not positive.
        - ``pattern`` names an unknown load pattern.
    """


class PayloadError(WsLoaderError):
    """Base class for failures while loading the request payload.

    Either subclass is fatal to the whole run: no clients are spawned.
    """


class PayloadLoadError(PayloadError):
    """Raised when the payload file cannot be read."""


class PayloadFormatError(PayloadError):
    """Raised when the payload file does not contain valid JSON."""


class EngineError(WsLoaderError):
    """Raised when a load run fails outside of an individual client."""
