#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Command line entry point for uplinktest."""

from __future__ import annotations

import sys
from contextlib import nullcontext

from attrs import evolve
import click
from provide.foundation.cli.decorators import logging_options
from provide.foundation.logger import get_logger
import pytest
from structlog.typing import FilteringBoundLogger as StructLogger

from uplinktest import __version__, uplink
from uplinktest.backends import DEFAULT_BACKEND, BackendLoadError
from uplinktest.backends.memory import MemoryGrant, default_network
from uplinktest.config import (
    ACCESS_ENV,
    BACKEND_ENV,
    MAXIMUM_CONCURRENT_ENV,
    SATELLITE_ADDR_ENV,
    TMP_DIR_ENV,
    ConfigurationError,
    TestEnvironment,
)
from uplinktest.testing import random_data, require_noerror, requiref, with_test_project
from uplinktest.uplink import Project

log: StructLogger = get_logger(__name__)

SMOKE_OBJECT_KEY = "uplinktest-smoke"


@click.group(name="uplinktest")
@click.version_option(version=__version__, prog_name="uplinktest")
def cli():
    """Helpers for running uplink integration tests."""


@cli.command(name="env")
@click.option("--show-access", is_flag=True, help="Print the access grant without redaction.")
@logging_options
@click.pass_context
def show_env(ctx: click.Context, show_access: bool, **kwargs):
    """Show the test environment as the fixture will read it."""
    try:
        env = TestEnvironment.from_env()
    except ConfigurationError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    access = env.access if show_access else evolve(env, redact_access=True).display_access()
    click.echo(f"{SATELLITE_ADDR_ENV}: {env.satellite_addr or '(unset)'}")
    click.echo(f"{ACCESS_ENV}: {access or '(unset)'}")
    click.echo(f"{TMP_DIR_ENV}: {env.tmp_dir or '(unset)'}")
    click.echo(f"{BACKEND_ENV}: {env.backend}")
    click.echo(f"{MAXIMUM_CONCURRENT_ENV}: {env.maximum_concurrent or '(default)'}")


@cli.command(name="grant")
@click.argument("satellite_addr")
@click.option("--passphrase", default="passphrase", show_default=True, help="Passphrase stored in the grant.")
def issue_grant(satellite_addr: str, passphrase: str):
    """Print a new access grant for the in-process memory backend.

    Example:
        export UPLINK_0_ACCESS=$(uplinktest grant 127.0.0.1:7777)
    """
    click.echo(MemoryGrant.issue(satellite_addr, passphrase).serialize())


def _smoke_upload(project: Project, bucket: str, size: int) -> None:
    result = uplink.upload_object(project, bucket, SMOKE_OBJECT_KEY)
    try:
        require_noerror(result.error)
        write = uplink.upload_write(result.upload, random_data(size))
        require_noerror(write.error)
        requiref(write.bytes_written == size, "wrote %d of %d bytes", write.bytes_written, size)
        require_noerror(uplink.upload_commit(result.upload))
    finally:
        uplink.free_upload_result(result)


@cli.command(name="check")
@click.option("--bucket", default=None, help="Also upload a small object into this bucket.")
@click.option("--size", default=1024, show_default=True, type=click.IntRange(min=0), help="Smoke upload size.")
@logging_options
@click.pass_context
def check(ctx: click.Context, bucket: str | None, size: int, **kwargs):
    """Open the default test project, release it, and verify nothing leaked.

    With the default memory backend the dialed satellite is provisioned on
    demand, trusting the grant's API key and holding ``--bucket`` if given.

    Example:
        export SATELLITE_0_ADDR=127.0.0.1:7777
        export UPLINK_0_ACCESS=$(uplinktest grant $SATELLITE_0_ADDR)
        uplinktest check --bucket testbucket
    """

    def handle_project(project: Project) -> None:
        if bucket is not None:
            _smoke_upload(project, bucket, size)

    try:
        env = TestEnvironment.from_env()
        if env.backend == DEFAULT_BACKEND:
            provisioning = default_network.provisioning(*([bucket] if bucket else []))
        else:
            provisioning = nullcontext()
        with provisioning:
            with_test_project(handle_project)
    except pytest.fail.Exception as e:
        click.echo(f"❌ Check failed: {e}", err=True)
        sys.exit(1)
    except (ConfigurationError, BackendLoadError) as e:
        log.error("Test environment is unusable", error=str(e))
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Test project opened and released cleanly")


if __name__ == "__main__":
    cli()

# 🔼⚙️🔚
