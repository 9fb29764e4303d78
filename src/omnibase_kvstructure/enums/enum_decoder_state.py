# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Lifecycle states of a StructureDecoder."""

from enum import Enum


class EnumDecoderState(str, Enum):
    """StructureDecoder lifecycle.

    State Transitions:
        CREATED -> RUNNING: start()
        RUNNING -> RUNNING: every detected change
        CREATED | RUNNING -> STOPPED: close()

    STOPPED is terminal; a closed decoder cannot be restarted.
    """

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


__all__ = ["EnumDecoderState"]
