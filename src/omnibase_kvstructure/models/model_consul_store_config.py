# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Consul Store Configuration Model.

Security Note:
    The token field uses SecretStr to prevent accidental logging of the ACL
    token. Tokens should come from the environment, never from committed
    configuration files.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ModelConsulStoreConfig(BaseModel):
    """Connection and blocking-query settings for ConsulKVStore.

    Attributes:
        host: Consul agent hostname (default "localhost")
        port: Consul agent HTTP port (default 8500)
        scheme: "http" or "https"
        token: ACL token (SecretStr, optional)
        datacenter: Datacenter to query (optional, agent default otherwise)
        consistency: Read consistency mode ("default", "consistent", "stale")
        wait_seconds: Long-poll wait sent with each blocking query
        max_concurrent_operations: Thread pool size for the synchronous client
        circuit_breaker_enabled: Fail fast after repeated failures
        circuit_breaker_failure_threshold: Consecutive failures before opening
        circuit_breaker_reset_timeout_seconds: Seconds before a half-open probe

    Example:
        >>> config = ModelConsulStoreConfig(
        ...     host="consul.example.com",
        ...     token=SecretStr("acl-token"),
        ...     datacenter="dc1",
        ... )
        >>> print(config.token)
        **********
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        from_attributes=True,
    )

    host: str = Field(default="localhost", min_length=1, description="Consul agent host")
    port: int = Field(default=8500, ge=1, le=65535, description="Consul agent port")
    scheme: Literal["http", "https"] = Field(default="http", description="HTTP scheme")
    token: SecretStr | None = Field(
        default=None,
        description="Consul ACL token (use SecretStr for security)",
    )
    datacenter: str | None = Field(default=None, description="Consul datacenter")
    consistency: Literal["default", "consistent", "stale"] = Field(
        default="default",
        description="Read consistency mode for blocking queries",
    )
    wait_seconds: float = Field(
        default=30.0,
        ge=0.1,
        le=600.0,
        description="Long-poll wait for each blocking query",
    )
    max_concurrent_operations: int = Field(
        default=4,
        ge=1,
        le=100,
        description="Maximum concurrent Consul calls (thread pool size)",
    )
    circuit_breaker_enabled: bool = Field(
        default=True,
        description="Enable circuit breaker pattern for error recovery",
    )
    circuit_breaker_failure_threshold: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of consecutive failures before opening circuit",
    )
    circuit_breaker_reset_timeout_seconds: float = Field(
        default=30.0,
        ge=0.0,
        le=300.0,
        description="Seconds to wait before attempting to close opened circuit",
    )

    @property
    def target_name(self) -> str:
        """Name used for error context and circuit breaker logging."""
        return f"consul.{self.datacenter or 'default'}"


__all__: list[str] = ["ModelConsulStoreConfig"]
