"""Unit tests for bot_session_storage.serialization."""
from __future__ import annotations

import pytest

from bot_session_storage.exceptions import SerializationError, SessionStorageError
from bot_session_storage.serialization import (
    JsonSerializer,
    YamlSerializer,
    get_serializer,
)


class TestJsonSerializer:
    def test_compact_by_default(self) -> None:
        assert JsonSerializer().dumps({"a": 1, "b": [1, 2]}) == '{"a": 1, "b": [1, 2]}'

    def test_indent(self) -> None:
        assert "\n" in JsonSerializer(indent=2).dumps({"a": 1})

    def test_loads_scalars(self) -> None:
        serializer = JsonSerializer()
        assert serializer.loads('"hello"') == "hello"
        assert serializer.loads("42") == 42
        assert serializer.loads("null") is None

    def test_unserializable_value(self) -> None:
        with pytest.raises(SerializationError, match="set"):
            JsonSerializer().dumps({1, 2})

    def test_circular_value(self) -> None:
        value: list = []
        value.append(value)
        with pytest.raises(SerializationError):
            JsonSerializer().dumps(value)

    def test_invalid_document(self) -> None:
        with pytest.raises(SerializationError, match="not valid JSON"):
            JsonSerializer().loads("{not json")

    def test_error_is_storage_and_value_error(self) -> None:
        with pytest.raises(SessionStorageError):
            JsonSerializer().loads("")
        with pytest.raises(ValueError):
            JsonSerializer().loads("")


class TestYamlSerializer:
    def test_roundtrip_nested(self) -> None:
        serializer = YamlSerializer()
        value = {"step": "checkout", "cart": [{"sku": "A1", "qty": 2}]}
        assert serializer.loads(serializer.dumps(value)) == value

    def test_block_style(self) -> None:
        assert YamlSerializer().dumps({"b": 1, "a": 2}) == "a: 2\nb: 1\n"

    def test_unsafe_object_rejected(self) -> None:
        with pytest.raises(SerializationError, match="YAML"):
            YamlSerializer().dumps(object())

    def test_invalid_document(self) -> None:
        with pytest.raises(SerializationError, match="not valid YAML"):
            YamlSerializer().loads("key: [unclosed")


class TestGetSerializer:
    def test_json(self) -> None:
        assert isinstance(get_serializer("json"), JsonSerializer)

    def test_yaml(self) -> None:
        serializer = get_serializer("yaml")
        assert isinstance(serializer, YamlSerializer)
        assert serializer.format_name == "yaml"

    def test_default_is_json(self) -> None:
        assert get_serializer().format_name == "json"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown serialization format"):
            get_serializer("toml")  # type: ignore[arg-type]
