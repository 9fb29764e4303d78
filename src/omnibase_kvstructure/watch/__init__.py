# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""KV prefix watch loop."""

from omnibase_kvstructure.watch.kv_watcher import KVWatcher, WatchEvent

__all__: list[str] = ["KVWatcher", "WatchEvent"]
