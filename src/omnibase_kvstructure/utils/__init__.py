# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure utilities."""

from omnibase_kvstructure.utils.util_error_sanitization import (
    sanitize_error_message,
    sanitize_error_string,
)
from omnibase_kvstructure.utils.util_shutdown import (
    ShutdownRequested,
    sleep_until_shutdown,
    until_shutdown,
)

__all__: list[str] = [
    "ShutdownRequested",
    "sanitize_error_message",
    "sanitize_error_string",
    "sleep_until_shutdown",
    "until_shutdown",
]
