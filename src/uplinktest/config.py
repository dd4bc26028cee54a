#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Test environment configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from attrs import define, field, validators

from uplinktest.backends import DEFAULT_BACKEND

SATELLITE_ADDR_ENV = "SATELLITE_0_ADDR"
ACCESS_ENV = "UPLINK_0_ACCESS"
TMP_DIR_ENV = "TMP_DIR"
BACKEND_ENV = "UPLINKTEST_BACKEND"
MAXIMUM_CONCURRENT_ENV = "UPLINKTEST_MAXIMUM_CONCURRENT"
REDACT_ACCESS_ENV = "UPLINKTEST_REDACT_ACCESS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
REDACTED_PREFIX_LENGTH = 8


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""


def _positive_or_none(instance, attribute, value) -> None:
    if value is not None and value <= 0:
        raise ValueError(f"{attribute.name} must be positive, got {value}")


@define(frozen=True)
class TestEnvironment:
    """Values the test-project fixture reads from the environment.

    ``satellite_addr`` and ``access`` are None when their variable is unset;
    they are passed through untouched so the access parser reports the
    problem."""

    __test__ = False

    satellite_addr: str | None = field(default=None)
    access: str | None = field(default=None)
    tmp_dir: Path | None = field(default=None)
    backend: str = field(default=DEFAULT_BACKEND, validator=validators.min_len(1))
    maximum_concurrent: int | None = field(default=None, validator=_positive_or_none)
    redact_access: bool = field(default=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TestEnvironment:
        """Build the configuration from ``environ`` (``os.environ`` by default).

        Raises:
            ConfigurationError: If a numeric variable is not a positive integer
        """
        env = os.environ if environ is None else environ

        maximum_concurrent = None
        raw_concurrent = env.get(MAXIMUM_CONCURRENT_ENV)
        if raw_concurrent:
            try:
                maximum_concurrent = int(raw_concurrent)
            except ValueError as e:
                raise ConfigurationError(
                    f"{MAXIMUM_CONCURRENT_ENV} must be an integer, got {raw_concurrent!r}"
                ) from e
            if maximum_concurrent <= 0:
                raise ConfigurationError(f"{MAXIMUM_CONCURRENT_ENV} must be positive, got {maximum_concurrent}")

        tmp_dir = env.get(TMP_DIR_ENV)
        return cls(
            satellite_addr=env.get(SATELLITE_ADDR_ENV),
            access=env.get(ACCESS_ENV),
            tmp_dir=Path(tmp_dir) if tmp_dir else None,
            backend=env.get(BACKEND_ENV) or DEFAULT_BACKEND,
            maximum_concurrent=maximum_concurrent,
            redact_access=env.get(REDACT_ACCESS_ENV, "").strip().lower() in _TRUTHY,
        )

    def display_access(self) -> str | None:
        """Access grant as it should appear in diagnostics."""
        if self.access is None or not self.redact_access:
            return self.access
        return f"{self.access[:REDACTED_PREFIX_LENGTH]}...(redacted)"


# 🔼⚙️🔚
