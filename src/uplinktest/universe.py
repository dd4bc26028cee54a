#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Registry of live handles.

Every Access, Project and Upload handed out by the binding layer is stored
here under an integer handle. Tests use ``is_empty()`` as a leak detector:
once every result has been freed the registry must be empty again."""

from __future__ import annotations

import threading
from typing import Any, TypeAlias

from provide.foundation.logger import get_logger

log = get_logger(__name__)

Handle: TypeAlias = int


class Universe:
    """Thread-safe mapping of integer handles to live values."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_handle: Handle = 0
        self._values: dict[Handle, Any] = {}

    def add(self, value: Any) -> Handle:
        """Store a value and return its new handle. Handles are never reused."""
        with self._lock:
            self._next_handle += 1
            handle = self._next_handle
            self._values[handle] = value
        log.debug("Handle added", handle=handle, kind=type(value).__name__)
        return handle

    def get(self, handle: Handle) -> Any | None:
        with self._lock:
            return self._values.get(handle)

    def delete(self, handle: Handle) -> None:
        with self._lock:
            self._values.pop(handle, None)
        log.debug("Handle deleted", handle=handle)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def reset(self) -> None:
        """Forget every live value. Handle numbering keeps increasing."""
        with self._lock:
            leaked = len(self._values)
            self._values.clear()
        if leaked:
            log.warning("Universe reset with live handles", leaked=leaked)


universe = Universe()


def internal_universe_is_empty() -> bool:
    """Report whether the process-wide universe holds no live handles."""
    return universe.is_empty()


# 🔼⚙️🔚
