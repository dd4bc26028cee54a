#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Shared pytest fixtures for uplinktest."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tests.helpers.satellites import memory_environ
from uplinktest import uplink
from uplinktest.backends.memory import MemorySatellite, default_network
from uplinktest.config import (
    ACCESS_ENV,
    BACKEND_ENV,
    MAXIMUM_CONCURRENT_ENV,
    REDACT_ACCESS_ENV,
    SATELLITE_ADDR_ENV,
    TMP_DIR_ENV,
)
from uplinktest.universe import universe

pytest_plugins = ["pytester"]

TEST_BUCKET = "testbucket"


@pytest.fixture(autouse=True)
def isolated_uplink(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test an empty universe, the default backend and a clean environment."""
    for name in (SATELLITE_ADDR_ENV, ACCESS_ENV, TMP_DIR_ENV, BACKEND_ENV, MAXIMUM_CONCURRENT_ENV, REDACT_ACCESS_ENV):
        monkeypatch.delenv(name, raising=False)
    universe.reset()
    uplink.set_backend(None)
    yield
    uplink.set_backend(None)
    default_network.clear()
    universe.reset()


@pytest.fixture
def satellite() -> MemorySatellite:
    """A satellite on the default memory network with one empty bucket."""
    sat = default_network.add_satellite()
    sat.create_bucket(TEST_BUCKET)
    return sat


@pytest.fixture
def satellite_env(satellite: MemorySatellite, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Point SATELLITE_0_ADDR and UPLINK_0_ACCESS at the test satellite."""
    environ = memory_environ(satellite)
    for name, value in environ.items():
        monkeypatch.setenv(name, value)
    return environ


# 🔼⚙️🔚
