#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Protocols a satellite backend implements for the binding layer."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from uplinktest.scope import Scope
    from uplinktest.uplink import ObjectInfo


class UploadStream(Protocol):
    """A pending object upload."""

    def write(self, data: bytes) -> int:
        """Append data to the object and return the number of bytes accepted."""
        ...

    def commit(self) -> None: ...

    def abort(self) -> None: ...

    def info(self) -> ObjectInfo: ...


class ProjectSession(Protocol):
    """An authenticated session against one satellite."""

    def close(self) -> None: ...

    def revoke_access(self, grant: Any) -> None: ...

    def upload_object(
        self,
        bucket: str,
        key: str,
        *,
        expires: datetime | None,
        scope: Scope,
    ) -> UploadStream:
        """Start an upload of ``key`` into ``bucket``.

        Raises:
            UplinkError: If the upload cannot be started
        """
        ...


class SatelliteBackend(Protocol):
    """Parses access grants and opens project sessions.

    Implementations raise ``UplinkError`` subclasses; the binding layer turns
    them into result values.
    """

    def parse_access(self, serialized: str) -> Any:
        """Parse a serialized access grant into a backend-specific grant."""
        ...

    def open_project(self, grant: Any, *, maximum_concurrent: int | None, scope: Scope) -> ProjectSession:
        """Open a project session for a parsed grant."""
        ...


# 🔼⚙️🔚
