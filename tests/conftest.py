# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for omnibase_kvstructure tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from omnibase_kvstructure.models import (
    ModelStructureDecoderConfig,
    ModelWatchBackoffConfig,
)


@pytest.fixture
def fast_backoff() -> ModelWatchBackoffConfig:
    """Backoff short enough for retries inside a unit test."""
    return ModelWatchBackoffConfig(
        initial_delay_seconds=0.01,
        max_delay_seconds=0.05,
        exponential_base=2.0,
    )


@pytest.fixture
def decoder_config(fast_backoff: ModelWatchBackoffConfig) -> ModelStructureDecoderConfig:
    """Decoder configuration watching ``test/``."""
    return ModelStructureDecoderConfig(prefix="test/", backoff=fast_backoff)


@pytest.fixture
def mock_consul_client() -> MagicMock:
    """Provide mocked consul.Consul client."""
    client = MagicMock()
    client.kv = MagicMock()
    client.kv.get = MagicMock(
        return_value=(
            "42",
            [
                {"Key": "app/config/addr", "Value": b"foo", "ModifyIndex": 40},
                {"Key": "app/config/child/", "Value": None, "ModifyIndex": 12},
                {"Key": "app/config/child/data", "Value": b"bar", "ModifyIndex": 42},
            ],
        )
    )
    return client
