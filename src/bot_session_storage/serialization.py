"""Session value serialization.

Every backend stores session values as text.  Serializers turn an arbitrary
session value into that text and back, wrapping any encoder failure in
``SerializationError`` so callers see a single error type.

Classes
-------
- ValueSerializer  — abstract text codec
- JsonSerializer   — JSON codec (the default everywhere)
- YamlSerializer   — YAML codec
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Literal

import yaml

from bot_session_storage.exceptions import SerializationError


class ValueSerializer(ABC):
    """Encode session values to text and decode them back."""

    #: Short format name, used by the CLI and in error messages.
    format_name: str = ""

    @abstractmethod
    def dumps(self, value: Any) -> str:
        """Return ``value`` encoded as text.

        Raises
        ------
        SerializationError
            If ``value`` cannot be represented in this format.
        """

    @abstractmethod
    def loads(self, raw: str) -> Any:
        """Return the value encoded in ``raw``.

        Raises
        ------
        SerializationError
            If ``raw`` is not a valid document in this format.
        """


class JsonSerializer(ValueSerializer):
    """JSON codec.

    Parameters
    ----------
    indent:
        Optional indentation passed to ``json.dumps``.  ``None`` (default)
        produces the compact form sent over the wire.
    """

    format_name = "json"

    def __init__(self, indent: int | None = None) -> None:
        self.indent = indent

    def dumps(self, value: Any) -> str:
        try:
            return json.dumps(value, indent=self.indent)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode value of type {type(value).__name__} as JSON: {exc}"
            ) from exc

    def loads(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"Stored value is not valid JSON: {exc}") from exc

    def __repr__(self) -> str:
        return f"JsonSerializer(indent={self.indent!r})"


class YamlSerializer(ValueSerializer):
    """YAML codec using ``yaml.safe_dump`` / ``yaml.safe_load``."""

    format_name = "yaml"

    def dumps(self, value: Any) -> str:
        try:
            return yaml.safe_dump(
                value, default_flow_style=False, allow_unicode=True, sort_keys=True
            )
        except yaml.YAMLError as exc:
            raise SerializationError(
                f"Cannot encode value of type {type(value).__name__} as YAML: {exc}"
            ) from exc

    def loads(self, raw: str) -> Any:
        try:
            return yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise SerializationError(f"Stored value is not valid YAML: {exc}") from exc

    def __repr__(self) -> str:
        return "YamlSerializer()"


def get_serializer(format: Literal["json", "yaml"] = "json") -> ValueSerializer:
    """Return a serializer for the named format.

    Parameters
    ----------
    format:
        Either ``"json"`` (default) or ``"yaml"``.

    Raises
    ------
    ValueError
        If ``format`` is not a known format name.
    """
    if format == "json":
        return JsonSerializer()
    if format == "yaml":
        return YamlSerializer()
    raise ValueError(f"Unknown serialization format {format!r}. Expected 'json' or 'yaml'.")


__all__ = ["JsonSerializer", "ValueSerializer", "YamlSerializer", "get_serializer"]
