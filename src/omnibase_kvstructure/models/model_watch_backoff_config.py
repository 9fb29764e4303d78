# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Backoff configuration for the KV watch loop."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelWatchBackoffConfig(BaseModel):
    """Exponential backoff applied after a failed blocking query.

    The watch loop retries forever, so there is no attempt limit. The delay
    after the n-th consecutive failure (n starting at 0) is
    ``initial_delay_seconds * exponential_base ** n`` capped at
    ``max_delay_seconds``; a successful query resets n.

    Attributes:
        initial_delay_seconds: Delay after the first failure (0.01-60.0)
        max_delay_seconds: Upper bound on the delay (0.01-300.0)
        exponential_base: Growth factor between consecutive failures (1.0-4.0)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_delay_seconds: float = Field(
        default=1.0,
        ge=0.01,
        le=60.0,
        description="Delay after the first consecutive failure",
    )
    max_delay_seconds: float = Field(
        default=30.0,
        ge=0.01,
        le=300.0,
        description="Maximum delay between retries",
    )
    exponential_base: float = Field(
        default=2.0,
        ge=1.0,
        le=4.0,
        description="Exponential growth factor",
    )

    def delay_for(self, failures: int) -> float:
        """Return the backoff delay after ``failures`` consecutive failures.

        Args:
            failures: Consecutive failures before this one (0 for the first).

        Returns:
            Delay in seconds, never above ``max_delay_seconds``.
        """
        if failures < 0:
            failures = 0
        # Cap the exponent so large failure counts cannot overflow a float.
        delay = self.initial_delay_seconds * (self.exponential_base ** min(failures, 64))
        return min(delay, self.max_delay_seconds)


__all__: list[str] = ["ModelWatchBackoffConfig"]
