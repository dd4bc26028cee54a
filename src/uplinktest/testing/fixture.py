#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Default test project fixture.

Opens the project described by ``SATELLITE_0_ADDR`` and ``UPLINK_0_ACCESS``,
hands it to the test body, then releases it and checks that no handle was
leaked. Every failed step ends the test through the fail-fast asserts."""

from __future__ import annotations

import contextlib
import io
import sys
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING

from provide.foundation.logger import get_logger

from uplinktest import uplink
from uplinktest.backends import DEFAULT_BACKEND, load_backend
from uplinktest.config import ACCESS_ENV, SATELLITE_ADDR_ENV, TestEnvironment
from uplinktest.testing.asserts import require_noerror, requiref
from uplinktest.universe import internal_universe_is_empty

if TYPE_CHECKING:
    from uplinktest.backends.protocols import SatelliteBackend
    from uplinktest.uplink import Project

log = get_logger(__name__)

UNSET = "(unset)"


def _unbuffer_stdout() -> None:
    """Make stdout write through so diagnostics survive an aborted test."""
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None:
        with contextlib.suppress(ValueError, io.UnsupportedOperation):
            reconfigure(write_through=True)


def _show(value: str | None) -> str:
    return UNSET if value is None else value


@contextmanager
def _backend_for(env: TestEnvironment, backend: SatelliteBackend | None) -> Generator[None, None, None]:
    """Install ``backend`` (or the one named by the environment) for the block."""
    if backend is None and env.backend != DEFAULT_BACKEND:
        backend = load_backend(env.backend)
    if backend is None:
        yield
        return

    previous = uplink.set_backend(backend)
    try:
        yield
    finally:
        uplink.set_backend(previous)


@contextmanager
def open_test_project(
    *,
    environ: Mapping[str, str] | None = None,
    backend: SatelliteBackend | None = None,
) -> Generator[Project, None, None]:
    """Open the default test project for the duration of a ``with`` block.

    Args:
        environ: Environment mapping to read instead of ``os.environ``
        backend: Backend to use instead of the configured one

    Yields:
        A live, non-null project handle
    """
    _unbuffer_stdout()

    env = TestEnvironment.from_env(environ)
    print(f"using {SATELLITE_ADDR_ENV}: {_show(env.satellite_addr)}", flush=True)
    print(f"using {ACCESS_ENV}: {_show(env.display_access())}", flush=True)

    with _backend_for(env, backend):
        access_result = uplink.parse_access(env.access)
        try:
            require_noerror(access_result.error)
            project_result = uplink.open_project(access_result.access, env.maximum_concurrent)
        finally:
            uplink.free_access_result(access_result)

        released = False
        try:
            require_noerror(project_result.error)
            requiref(project_result.project is not None, "got empty project\n")
            log.debug("Test project opened", satellite=env.satellite_addr)

            yield project_result.project

            released = True
            err = uplink.free_project_result(project_result)
        finally:
            if not released:
                # the test is already failing; drop the handle so later tests start clean
                uplink.free_project_result(project_result)

        require_noerror(err)
        requiref(internal_universe_is_empty(), "universe is not empty\n")


def with_test_project(
    handle_project: Callable[[Project], None],
    *,
    environ: Mapping[str, str] | None = None,
    backend: SatelliteBackend | None = None,
) -> None:
    """Open the default test project and call ``handle_project`` with it once."""
    with open_test_project(environ=environ, backend=backend) as project:
        handle_project(project)


# 🔼⚙️🔚
