#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Error classes carried by uplink result values.

Binding functions never raise these for library failures; they return them
inside a result (``ProjectResult.error``, ``WriteResult.error``, ...) so test
code can hand them unchanged to ``require_noerror``."""

from __future__ import annotations


class UplinkError(Exception):
    """Base exception for every error reported by the uplink layer."""

    code = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"uplink: {self.code}: {self.message}"


class NullArgumentError(UplinkError):
    """Raised when a required handle or argument is None."""

    code = "null_argument"

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"{argument} is null")


class InvalidHandleError(UplinkError):
    """Raised when a handle is unknown to the universe or of the wrong kind."""

    code = "invalid_handle"

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"invalid handle for {kind}")


class InvalidArgumentError(UplinkError):
    """Raised for an argument with an unusable value."""

    code = "invalid_argument"


class AccessGrantError(UplinkError):
    """Raised when a serialized access grant cannot be parsed."""

    code = "invalid_access_grant"


class DialError(UplinkError):
    """Raised when the satellite named by a grant cannot be reached."""

    code = "dial"

    def __init__(self, satellite_addr: str):
        self.satellite_addr = satellite_addr
        super().__init__(f"unable to reach satellite {satellite_addr!r}")


class PermissionDeniedError(UplinkError):
    """Raised when the API key in a grant is unknown or revoked."""

    code = "permission_denied"


class BucketNotFoundError(UplinkError):
    """Raised when an operation names a bucket that does not exist."""

    code = "bucket_not_found"

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"bucket {bucket!r} not found")


class UploadDoneError(UplinkError):
    """Raised when writing to an upload that was already committed or aborted."""

    code = "upload_done"


class CanceledError(UplinkError):
    """Raised when the scope owning an operation has been canceled."""

    code = "canceled"


class ProjectClosedError(UplinkError):
    """Raised when a closed project is used again."""

    code = "project_closed"

    def __init__(self) -> None:
        super().__init__("project is closed")


# 🔼⚙️🔚
