"""Request payload template, loaded once and shared read-only by every client."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from wsloader._internal.errors import PayloadFormatError, PayloadLoadError
from wsloader._internal.logging import get_logger

logger = get_logger("protocol.payload")


def _freeze(value: Any) -> Any:
    """Return a read-only deep copy of a decoded JSON value.

    Objects become ``MappingProxyType`` and arrays become tuples; scalars are
    already immutable.
    """
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def encode_frozen(obj: object) -> object:
    """``json.dumps`` hook that serializes the read-only mappings of a template."""
    if isinstance(obj, MappingProxyType):
        return dict(obj)
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


@dataclass(frozen=True)
class PayloadTemplate:
    """Pre-parsed, immutable JSON value used as the ``data`` of every request.

    Attributes:
        source: File the template was loaded from.
        data: The decoded JSON value, frozen all the way down.
        size_bytes: Size of the file on disk.
    """

    source: Path
    data: Any
    size_bytes: int = 0

    @classmethod
    def from_value(cls, value: Any, source: str | Path = "<memory>") -> PayloadTemplate:
        """Build a template from an already-decoded JSON value."""
        return cls(source=Path(source), data=_freeze(value))

    def to_json(self) -> str:
        """Serialize the template as compact JSON text."""
        return json.dumps(self.data, default=encode_frozen, separators=(",", ":"))

    def thaw(self) -> Any:
        """Return a mutable deep copy of the template data."""
        return json.loads(self.to_json())


def load_payload(path: str | Path) -> PayloadTemplate:
    """Read and parse the payload file.

    This is the only payload I/O of a run.

    Args:
        path: Path to a JSON document.

    Returns:
        The frozen PayloadTemplate.

    Raises:
        PayloadLoadError: If the file cannot be read.
        PayloadFormatError: If the contents are not valid UTF-8 JSON.
    """
    payload_path = Path(path)
    try:
        raw = payload_path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read payload file {payload_path}: {exc}"
        raise PayloadLoadError(msg) from exc

    try:
        value = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        msg = f"Payload file {payload_path} is not valid JSON: {exc}"
        raise PayloadFormatError(msg) from exc

    logger.info("Loaded payload template from %s (%d bytes)", payload_path, len(raw))
    return PayloadTemplate(source=payload_path, data=_freeze(value), size_bytes=len(raw))
