#
# SPDX-FileCopyrightText: Copyright (c) provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Test helper modules for the uplinktest test suite.

This package contains utilities for wiring in-memory satellites into the
environment the test project fixture reads."""

from __future__ import annotations

# 🔼⚙️🔚
