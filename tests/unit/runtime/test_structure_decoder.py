# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for StructureDecoder.

Drives the full watch -> decode -> deliver pipeline against
InMemoryKVStore, so every test runs without a Consul agent.

Test Organization:
    - TestStructureDecoderScenarios: reference decode scenarios end to end,
      with capitalised field names read from lowercase keys
    - TestStructureDecoderDelivery: ordering, errors, live updates
    - TestStructureDecoderLifecycle: start/close state machine
    - TestStructureDecoderShutdown: close() during blocking calls and handoffs
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from unittest.mock import patch

import pytest

from omnibase_kvstructure.enums import EnumDecoderState, EnumInfraTransportType
from omnibase_kvstructure.errors import (
    InfraConnectionError,
    ProtocolConfigurationError,
    RuntimeHostError,
    StructuralDecodeError,
)
from omnibase_kvstructure.models import ModelStructureDecoderConfig
from omnibase_kvstructure.runtime import StructureDecoder
from omnibase_kvstructure.stores import InMemoryKVStore
from tests.helpers.kv_helpers import BOUNDED_WAIT_SECONDS, ScriptedKVStore


@dataclass
class AddrConfig:
    Addr: str = ""


@dataclass
class ChildConfig:
    Data: str = ""


@dataclass
class ParentConfig:
    Addr: str = ""
    Child: ChildConfig = field(default_factory=ChildConfig)


@dataclass
class TaggedConfig:
    Addr: str = field(default="", metadata={"consul": "other"})


@dataclass
class PortConfig:
    port: int = 0


async def get(queue: asyncio.Queue) -> object:
    return await asyncio.wait_for(queue.get(), BOUNDED_WAIT_SECONDS)


class TestStructureDecoderScenarios:
    """Reference scenarios through the whole pipeline."""

    @pytest.mark.asyncio
    async def test_single_scalar(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(
            AddrConfig, decoder_config, updates, errors, store=store
        ):
            value = await get(updates)

        assert value == AddrConfig(Addr="foo")
        assert errors.empty()

    @pytest.mark.asyncio
    async def test_empty_prefix(self) -> None:
        """An empty prefix delivers one error, no value, and never queries."""
        store = InMemoryKVStore({"addr": "foo"})
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(
            AddrConfig, ModelStructureDecoderConfig(prefix=""), updates, errors, store
        ):
            error = await get(errors)
            await asyncio.sleep(0.02)

        assert isinstance(error, ProtocolConfigurationError)
        assert updates.empty()
        assert errors.empty()
        assert store.list_calls == 0

    @pytest.mark.asyncio
    async def test_nested_record(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore(
            {"test/addr": "foo", "test/child/data": "bar"}, default_wait_seconds=0.05
        )
        updates: asyncio.Queue[ParentConfig] = asyncio.Queue()

        async with StructureDecoder(ParentConfig, decoder_config, updates, store=store):
            value = await get(updates)

        assert value == ParentConfig(Addr="foo", Child=ChildConfig(Data="bar"))

    @pytest.mark.asyncio
    async def test_tag_override(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/other": "foo"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[TaggedConfig] = asyncio.Queue()

        async with StructureDecoder(TaggedConfig, decoder_config, updates, store=store):
            value = await get(updates)

        assert value == TaggedConfig(Addr="foo")

    @pytest.mark.asyncio
    async def test_non_record_target(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"})
        updates: asyncio.Queue[dict] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(dict, decoder_config, updates, errors, store):
            error = await get(errors)

        assert isinstance(error, ProtocolConfigurationError)
        assert store.list_calls == 0


class TestStructureDecoderDelivery:
    """Ordering and error delivery."""

    @pytest.mark.asyncio
    async def test_live_updates_in_order(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "v0"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()
        decoder = StructureDecoder(AddrConfig, decoder_config, updates, store=store)
        seen_indices: list[int] = []
        values: list[str] = []

        async with decoder:
            values.append((await get(updates)).Addr)
            seen_indices.append(decoder.last_index)
            for n in range(1, 4):
                await store.put("test/addr", f"v{n}")
                values.append((await get(updates)).Addr)
                seen_indices.append(decoder.last_index)

        assert values == ["v0", "v1", "v2", "v3"]
        assert seen_indices == sorted(set(seen_indices))

    @pytest.mark.asyncio
    async def test_multi_key_write_decoded_together(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        """Keys written under one wake-up show up in a single decoded value."""
        store = InMemoryKVStore({"test/addr": "v0"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[ParentConfig] = asyncio.Queue()

        async with StructureDecoder(ParentConfig, decoder_config, updates, store=store):
            await get(updates)
            await store.put_many({"test/addr": "v1", "test/child/data": "d1"})
            value = await get(updates)
            await asyncio.sleep(0.1)

            assert updates.empty()

        assert value == ParentConfig(Addr="v1", Child=ChildConfig(Data="d1"))

    @pytest.mark.asyncio
    async def test_unrelated_change_not_delivered(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()

        async with StructureDecoder(AddrConfig, decoder_config, updates, store=store):
            await get(updates)
            await store.put("elsewhere/key", "x")
            await asyncio.sleep(0.15)

            assert updates.empty()

    @pytest.mark.asyncio
    async def test_structural_error_then_recovery(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        """A bad value yields an error; the next change decodes again."""
        store = InMemoryKVStore({"test/port": "abc"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[PortConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(PortConfig, decoder_config, updates, errors, store):
            error = await get(errors)
            assert updates.empty()

            await store.put("test/port", "8080")
            value = await get(updates)

        assert isinstance(error, StructuralDecodeError)
        assert error.field_path == "port"
        assert value == PortConfig(port=8080)

    @pytest.mark.asyncio
    async def test_store_error_then_recovery(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"}, default_wait_seconds=0.05)
        store.fail_next(ConnectionError("agent unreachable"))
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(AddrConfig, decoder_config, updates, errors, store):
            error = await get(errors)
            value = await get(updates)

        assert isinstance(error, InfraConnectionError)
        assert error.context["transport_type"] is EnumInfraTransportType.MEMORY
        assert value == AddrConfig(Addr="foo")

    @pytest.mark.asyncio
    async def test_errors_logged_without_error_queue(
        self,
        decoder_config: ModelStructureDecoderConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store = InMemoryKVStore({"test/port": "abc"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[PortConfig] = asyncio.Queue()

        with caplog.at_level(logging.WARNING):
            async with StructureDecoder(PortConfig, decoder_config, updates, store=store):
                await asyncio.sleep(0.05)
                await store.put("test/port", "1")
                value = await get(updates)

        assert value == PortConfig(port=1)
        assert any("Dropping error" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_one_delivery_per_change(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        """Each detected change yields a value or an error, never both."""
        store = InMemoryKVStore({"test/port": "1"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[PortConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()

        async with StructureDecoder(PortConfig, decoder_config, updates, errors, store):
            await get(updates)
            await store.put("test/port", "bad")
            await get(errors)
            await store.put("test/port", "2")
            await get(updates)
            await asyncio.sleep(0.1)

            assert updates.empty()
            assert errors.empty()


class TestStructureDecoderLifecycle:
    """State machine."""

    @pytest.mark.asyncio
    async def test_states(self, decoder_config: ModelStructureDecoderConfig) -> None:
        store = ScriptedKVStore()
        decoder = StructureDecoder(
            AddrConfig, decoder_config, asyncio.Queue(), store=store
        )

        assert decoder.state is EnumDecoderState.CREATED
        assert decoder.last_index == 0
        assert store.calls == []

        await decoder.start()
        assert decoder.state is EnumDecoderState.RUNNING

        await decoder.close()
        assert decoder.state is EnumDecoderState.STOPPED

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(
        self,
        decoder_config: ModelStructureDecoderConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store = ScriptedKVStore()
        decoder = StructureDecoder(
            AddrConfig, decoder_config, asyncio.Queue(), store=store
        )

        with caplog.at_level(logging.WARNING):
            await decoder.start()
            await decoder.start()
            await asyncio.sleep(0.01)

        assert len(store.calls) == 1
        assert any("already running" in r.getMessage() for r in caplog.records)
        await decoder.close()

    @pytest.mark.asyncio
    async def test_restart_after_close_rejected(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        decoder = StructureDecoder(
            AddrConfig, decoder_config, asyncio.Queue(), store=ScriptedKVStore()
        )
        await decoder.start()
        await decoder.close()

        with pytest.raises(RuntimeHostError, match="cannot be restarted"):
            await decoder.start()

    @pytest.mark.asyncio
    async def test_close_idempotent(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        decoder = StructureDecoder(
            AddrConfig, decoder_config, asyncio.Queue(), store=ScriptedKVStore()
        )
        await decoder.start()

        await decoder.close()
        await decoder.close()

        assert decoder.state is EnumDecoderState.STOPPED

    @pytest.mark.asyncio
    async def test_close_before_start(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = ScriptedKVStore()
        decoder = StructureDecoder(AddrConfig, decoder_config, asyncio.Queue(), store=store)

        await decoder.close()

        assert decoder.state is EnumDecoderState.STOPPED
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_injected_store_left_open(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = ScriptedKVStore()
        decoder = StructureDecoder(AddrConfig, decoder_config, asyncio.Queue(), store=store)
        await decoder.start()

        await decoder.close()

        assert store.closed is False

    @pytest.mark.asyncio
    async def test_owned_store_built_and_closed(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()

        with patch(
            "omnibase_kvstructure.runtime.structure_decoder.ConsulKVStore",
            return_value=store,
        ) as MockStore:
            async with StructureDecoder(AddrConfig, decoder_config, updates):
                assert await get(updates) == AddrConfig(Addr="foo")

        MockStore.assert_called_once_with(decoder_config.consul)
        with pytest.raises(RuntimeHostError):
            await store.list("test/", 0)


class TestStructureDecoderShutdown:
    """close() interrupts every suspension point."""

    @pytest.mark.asyncio
    async def test_close_during_blocking_call(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        store = InMemoryKVStore({"test/addr": "foo"}, default_wait_seconds=30.0)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue()
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()
        decoder = StructureDecoder(AddrConfig, decoder_config, updates, errors, store)

        await decoder.start()
        await get(updates)
        await asyncio.sleep(0.02)

        await asyncio.wait_for(decoder.close(), BOUNDED_WAIT_SECONDS)

        await store.put("test/addr", "after-close")
        await asyncio.sleep(0.05)
        assert updates.empty()
        assert errors.empty()

    @pytest.mark.asyncio
    async def test_close_during_backoff(self) -> None:
        config = ModelStructureDecoderConfig(prefix="test/")
        store = InMemoryKVStore({"test/addr": "foo"})
        store.fail_next(ConnectionError("down"))
        errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()
        decoder = StructureDecoder(AddrConfig, config, asyncio.Queue(), errors, store)

        await decoder.start()
        await get(errors)

        await asyncio.wait_for(decoder.close(), BOUNDED_WAIT_SECONDS)

        assert store.list_calls == 1

    @pytest.mark.asyncio
    async def test_close_during_blocked_handoff(
        self, decoder_config: ModelStructureDecoderConfig
    ) -> None:
        """A full update queue applies backpressure without blocking close()."""
        store = InMemoryKVStore({"test/addr": "v0"}, default_wait_seconds=0.05)
        updates: asyncio.Queue[AddrConfig] = asyncio.Queue(maxsize=1)
        decoder = StructureDecoder(AddrConfig, decoder_config, updates, store=store)

        await decoder.start()
        for _ in range(20):
            if updates.full():
                break
            await asyncio.sleep(0.01)
        await store.put("test/addr", "v1")
        await asyncio.sleep(0.05)

        await asyncio.wait_for(decoder.close(), BOUNDED_WAIT_SECONDS)

        assert updates.qsize() == 1
        assert updates.get_nowait() == AddrConfig(Addr="v0")
