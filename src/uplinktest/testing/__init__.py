#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Helpers for uplink integration tests.

This package contains the default test project fixture, deterministic test
data generation and the fail-fast assertions those helpers use."""

from __future__ import annotations

from uplinktest.testing.asserts import require_noerror, requiref
from uplinktest.testing.data import array_contains, fill_random_data, random_data
from uplinktest.testing.fixture import open_test_project, with_test_project

__all__ = [
    "array_contains",
    "fill_random_data",
    "open_test_project",
    "random_data",
    "require_noerror",
    "requiref",
    "with_test_project",
]

# 🔼⚙️🔚
