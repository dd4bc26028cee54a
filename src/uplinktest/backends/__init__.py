#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Uplinktest Backends Package.

This package contains implementations of the SatelliteBackend protocol
used by the binding layer. A backend is named by the dotted path of a
module exposing ``get_backend()``."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from provide.foundation.logger import get_logger

if TYPE_CHECKING:
    from uplinktest.backends.protocols import SatelliteBackend

log = get_logger(__name__)

DEFAULT_BACKEND = "uplinktest.backends.memory"


class BackendLoadError(ImportError):
    """Raised when a backend module cannot be imported or has no factory."""

    def __init__(self, dotted_path: str, reason: str):
        self.dotted_path = dotted_path
        super().__init__(f"Cannot load backend '{dotted_path}': {reason}")


def load_backend(dotted_path: str) -> SatelliteBackend:
    """Import ``dotted_path`` and return the backend built by its ``get_backend()``."""
    try:
        module = importlib.import_module(dotted_path)
    except ImportError as e:
        log.error("Backend module import failed", backend=dotted_path, error=str(e))
        raise BackendLoadError(dotted_path, str(e)) from e

    factory = getattr(module, "get_backend", None)
    if not callable(factory):
        raise BackendLoadError(dotted_path, "module has no get_backend() factory")

    backend = factory()
    log.debug("Backend loaded", backend=dotted_path, implementation=type(backend).__name__)
    return backend


__all__ = ["DEFAULT_BACKEND", "BackendLoadError", "load_backend"]

# 🔼⚙️🔚
