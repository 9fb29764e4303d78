# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for configuration and data models."""

import pytest
from pydantic import SecretStr, ValidationError

from omnibase_kvstructure.errors import ProtocolConfigurationError
from omnibase_kvstructure.models import (
    DEFAULT_TAG_NAME,
    ModelConsulStoreConfig,
    ModelKVEntry,
    ModelKVSnapshot,
    ModelStructureDecoderConfig,
    ModelWatchBackoffConfig,
)


class TestModelStructureDecoderConfig:
    """Decoder configuration validation."""

    def test_defaults(self) -> None:
        config = ModelStructureDecoderConfig()

        assert config.prefix == ""
        assert config.tag_name == DEFAULT_TAG_NAME == "consul"
        assert config.quiescence_enabled is False
        assert config.consul == ModelConsulStoreConfig()
        assert config.backoff == ModelWatchBackoffConfig()

    def test_frozen(self) -> None:
        config = ModelStructureDecoderConfig(prefix="app/")

        with pytest.raises(ValidationError):
            config.prefix = "other/"  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            ModelStructureDecoderConfig(prefix="app/", unknown=1)  # type: ignore[call-arg]

    def test_quiescence_timeout_below_period_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModelStructureDecoderConfig(
                quiescence_period_seconds=2.0, quiescence_timeout_seconds=1.0
            )

    def test_quiescence_enabled(self) -> None:
        config = ModelStructureDecoderConfig(
            quiescence_period_seconds=0.5, quiescence_timeout_seconds=1.0
        )

        assert config.quiescence_enabled is True

    def test_from_mapping(self) -> None:
        config = ModelStructureDecoderConfig.from_mapping(
            {
                "prefix": "service/web/",
                "tag_name": "kv",
                "backoff": {"initial_delay_seconds": 0.5},
                "consul": {
                    "host": "consul.example.com",
                    "token": "acl-token-abc123",
                    "datacenter": "dc1",
                },
            }
        )

        assert config.prefix == "service/web/"
        assert config.backoff.initial_delay_seconds == 0.5
        assert isinstance(config.consul.token, SecretStr)
        assert config.consul.token.get_secret_value() == "acl-token-abc123"
        assert "acl-token-abc123" not in repr(config)
        assert config.consul.target_name == "consul.dc1"

    def test_from_mapping_names_fields_not_values(self) -> None:
        with pytest.raises(ProtocolConfigurationError) as exc_info:
            ModelStructureDecoderConfig.from_mapping(
                {"consul": {"port": 99999, "token": "acl-token-abc123"}}
            )

        message = str(exc_info.value)
        assert "consul.port" in message
        assert "99999" not in message
        assert "acl-token-abc123" not in message
        assert isinstance(exc_info.value.__cause__, ValidationError)


class TestModelConsulStoreConfig:
    """Consul connection settings."""

    def test_defaults(self) -> None:
        config = ModelConsulStoreConfig()

        assert config.host == "localhost"
        assert config.port == 8500
        assert config.scheme == "http"
        assert config.token is None
        assert config.consistency == "default"
        assert config.target_name == "consul.default"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"port": 0},
            {"scheme": "ftp"},
            {"consistency": "eventual"},
            {"wait_seconds": 0.0},
            {"max_concurrent_operations": 0},
        ],
    )
    def test_invalid_values(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            ModelConsulStoreConfig(**overrides)


class TestModelWatchBackoffConfig:
    """Exponential backoff schedule."""

    def test_schedule(self) -> None:
        backoff = ModelWatchBackoffConfig(
            initial_delay_seconds=1.0, max_delay_seconds=10.0, exponential_base=2.0
        )

        assert [backoff.delay_for(n) for n in range(6)] == [
            1.0,
            2.0,
            4.0,
            8.0,
            10.0,
            10.0,
        ]

    def test_negative_failures_treated_as_zero(self) -> None:
        assert ModelWatchBackoffConfig().delay_for(-3) == 1.0

    def test_huge_failure_count_capped(self) -> None:
        assert ModelWatchBackoffConfig().delay_for(10_000) == 30.0


class TestKVModels:
    """Entries and snapshots."""

    def test_entry_from_consul_leaf(self) -> None:
        entry = ModelKVEntry.from_consul({"Key": "app/addr", "Value": b"foo"})

        assert entry == ModelKVEntry(key="app/addr", value=b"foo", is_dir=False)

    def test_entry_from_consul_directory(self) -> None:
        entry = ModelKVEntry.from_consul({"Key": "app/child/", "Value": None})

        assert entry.is_dir is True
        assert entry.value is None

    def test_entry_from_consul_text_value(self) -> None:
        entry = ModelKVEntry.from_consul({"Key": "app/addr", "Value": "foo"})

        assert entry.value == b"foo"

    def test_snapshot_sorted_by_key(self) -> None:
        snapshot = ModelKVSnapshot(
            prefix="app/",
            index=3,
            entries=(
                ModelKVEntry(key="app/b", value=b"2"),
                ModelKVEntry(key="app/a", value=b"1"),
            ),
        )

        assert [e.key for e in snapshot.entries] == ["app/a", "app/b"]
        assert snapshot.get("app/b") == b"2"
        assert snapshot.get("app/missing") is None
        assert len(snapshot) == 2

    def test_snapshot_index_non_negative(self) -> None:
        with pytest.raises(ValidationError):
            ModelKVSnapshot(prefix="app/", index=-1)
