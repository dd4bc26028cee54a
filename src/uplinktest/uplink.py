#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Handle-based uplink surface used by integration tests.

Every function here returns a result value instead of raising for library
failures. Handles (Access, Project, Upload) are registered in the universe
when created and removed again by the matching ``free_*`` function, so a
test can assert that nothing leaked once it is done.

Usage:
    access_result = parse_access(serialized)
    project_result = open_project(access_result.access)
    free_access_result(access_result)
    ...
    err = free_project_result(project_result)
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from attrs import define, field
from provide.foundation.logger import get_logger

from uplinktest.backends import DEFAULT_BACKEND, load_backend
from uplinktest.errors import (
    InvalidArgumentError,
    InvalidHandleError,
    NullArgumentError,
    UplinkError,
)
from uplinktest.scope import Scope, root_scope
from uplinktest.universe import Handle, universe

if TYPE_CHECKING:
    from uplinktest.backends.protocols import ProjectSession, SatelliteBackend, UploadStream

log = get_logger(__name__)

_backend: SatelliteBackend | None = None


def get_backend() -> SatelliteBackend:
    """Return the active backend, loading the default one on first use."""
    global _backend
    if _backend is None:
        _backend = load_backend(DEFAULT_BACKEND)
    return _backend


def set_backend(backend: SatelliteBackend | None) -> SatelliteBackend | None:
    """Install a backend and return the previous one. ``None`` restores the default."""
    global _backend
    previous = _backend
    _backend = backend
    log.debug("Backend installed", backend=type(backend).__name__ if backend else None)
    return previous


# --- Handles and results ---


@define(frozen=True)
class Access:
    """Handle to a parsed access grant."""

    _handle: Handle


@define(frozen=True)
class Project:
    """Handle to an open project session."""

    _handle: Handle


@define(frozen=True)
class Upload:
    """Handle to an in-progress upload."""

    _handle: Handle


@define(frozen=True)
class ObjectInfo:
    """Metadata of an uploaded (or uploading) object."""

    key: str
    is_prefix: bool = False
    created: datetime | None = None
    expires: datetime | None = None
    content_length: int = 0
    custom: dict[str, str] = field(factory=dict)


@define(frozen=True)
class UploadOptions:
    expires: datetime | None = None


@define(frozen=True)
class AccessResult:
    access: Access | None = None
    error: UplinkError | None = None


@define(frozen=True)
class ProjectResult:
    project: Project | None = None
    error: UplinkError | None = None


@define(frozen=True)
class UploadResult:
    upload: Upload | None = None
    error: UplinkError | None = None


@define(frozen=True)
class WriteResult:
    bytes_written: int = 0
    error: UplinkError | None = None


@define(frozen=True)
class ObjectResult:
    object: ObjectInfo | None = None
    error: UplinkError | None = None


# --- Universe values ---


@define(eq=False)
class _AccessValue:
    grant: Any


@define(eq=False)
class _ProjectValue:
    scope: Scope
    session: ProjectSession


@define(eq=False)
class _UploadValue:
    scope: Scope
    stream: UploadStream


def _lookup(handle_owner: Access | Project | Upload | None, kind: type) -> Any | None:
    if handle_owner is None:
        return None
    value = universe.get(handle_owner._handle)
    return value if isinstance(value, kind) else None


# --- Access ---


def parse_access(serialized: str | None) -> AccessResult:
    """Parse a serialized access grant into an Access handle."""
    if serialized is None:
        return AccessResult(error=NullArgumentError("access"))

    try:
        grant = get_backend().parse_access(serialized)
    except UplinkError as e:
        log.warning("Failed to parse access grant", error=str(e))
        return AccessResult(error=e)

    return AccessResult(access=Access(universe.add(_AccessValue(grant))))


def free_access(access: Access | None) -> None:
    """Release an Access handle. Releasing None is a no-op."""
    if access is None:
        return
    universe.delete(access._handle)


def free_access_result(result: AccessResult) -> None:
    free_access(result.access)


# --- Project ---


def open_project(access: Access | None, maximum_concurrent: int | None = None) -> ProjectResult:
    """Open a project using an access grant.

    Args:
        access: Access handle returned by ``parse_access``
        maximum_concurrent: Optional limit on concurrent segment uploads

    Returns:
        ProjectResult carrying either the project handle or the error
    """
    if access is None:
        return ProjectResult(error=NullArgumentError("access"))

    acc = _lookup(access, _AccessValue)
    if acc is None:
        return ProjectResult(error=InvalidHandleError("Access"))

    if maximum_concurrent is not None and maximum_concurrent <= 0:
        return ProjectResult(error=InvalidArgumentError("maximum_concurrent must be positive"))

    scope = root_scope("project")
    try:
        session = get_backend().open_project(acc.grant, maximum_concurrent=maximum_concurrent, scope=scope)
    except UplinkError as e:
        scope.cancel()
        log.warning("Failed to open project", error=str(e))
        return ProjectResult(error=e)

    handle = universe.add(_ProjectValue(scope=scope, session=session))
    log.debug("Project opened", handle=handle, maximum_concurrent=maximum_concurrent)
    return ProjectResult(project=Project(handle))


def close_project(project: Project | None) -> UplinkError | None:
    """Close the project session. The handle stays registered until freed."""
    if project is None:
        return None

    proj = _lookup(project, _ProjectValue)
    if proj is None:
        return InvalidHandleError("project")

    proj.scope.cancel()
    try:
        proj.session.close()
    except UplinkError as e:
        return e
    return None


def revoke_access(project: Project | None, access: Access | None) -> UplinkError | None:
    """Revoke the API key embedded in ``access`` using ``project``'s session."""
    if project is None:
        return NullArgumentError("project")
    if access is None:
        return NullArgumentError("access")

    proj = _lookup(project, _ProjectValue)
    if proj is None:
        return InvalidHandleError("project")

    acc = _lookup(access, _AccessValue)
    if acc is None:
        return InvalidHandleError("access")

    try:
        proj.session.revoke_access(acc.grant)
    except UplinkError as e:
        return e
    return None


def free_project(project: Project | None) -> None:
    """Close the project if still open and release its handle."""
    if project is None:
        return

    try:
        proj = _lookup(project, _ProjectValue)
        if proj is None:
            return

        proj.scope.cancel()
        # in case the project was not closed explicitly
        try:
            proj.session.close()
        except UplinkError as e:
            log.warning("Closing project during free failed", handle=project._handle, error=str(e))
    finally:
        universe.delete(project._handle)


def free_project_result(result: ProjectResult) -> UplinkError | None:
    """Release the project held by an open result.

    Returns:
        Always None; close failures are logged instead of returned.
    """
    free_project(result.project)
    return None


# --- Upload ---


def upload_object(
    project: Project | None,
    bucket_name: str | None,
    object_key: str | None,
    options: UploadOptions | None = None,
) -> UploadResult:
    """Start an upload to ``bucket_name``/``object_key``."""
    if project is None:
        return UploadResult(error=NullArgumentError("project"))
    if bucket_name is None:
        return UploadResult(error=NullArgumentError("bucket_name"))
    if object_key is None:
        return UploadResult(error=NullArgumentError("object_key"))

    proj = _lookup(project, _ProjectValue)
    if proj is None:
        return UploadResult(error=InvalidHandleError("project"))

    scope = proj.scope.child("upload")
    expires = options.expires if options is not None else None
    try:
        stream = proj.session.upload_object(bucket_name, object_key, expires=expires, scope=scope)
    except UplinkError as e:
        scope.cancel()
        return UploadResult(error=e)

    return UploadResult(upload=Upload(universe.add(_UploadValue(scope=scope, stream=stream))))


def upload_write(upload: Upload | None, data: bytes | bytearray | memoryview, length: int | None = None) -> WriteResult:
    """Write ``length`` bytes of ``data`` (all of it by default) to the upload."""
    up = _lookup(upload, _UploadValue)
    if up is None:
        return WriteResult(error=InvalidHandleError("upload"))

    if length is None:
        length = len(data)
    if length < 0 or length > len(data):
        return WriteResult(error=InvalidArgumentError("length out of range"))

    try:
        written = up.stream.write(bytes(memoryview(data)[:length]))
    except UplinkError as e:
        return WriteResult(error=e)
    return WriteResult(bytes_written=written)


def upload_commit(upload: Upload | None) -> UplinkError | None:
    up = _lookup(upload, _UploadValue)
    if up is None:
        return InvalidHandleError("upload")
    try:
        up.stream.commit()
    except UplinkError as e:
        return e
    return None


def upload_abort(upload: Upload | None) -> UplinkError | None:
    up = _lookup(upload, _UploadValue)
    if up is None:
        return InvalidHandleError("upload")
    try:
        up.stream.abort()
    except UplinkError as e:
        return e
    return None


def upload_info(upload: Upload | None) -> ObjectResult:
    """Return the latest information about the uploaded object."""
    up = _lookup(upload, _UploadValue)
    if up is None:
        return ObjectResult(error=InvalidHandleError("upload"))
    return ObjectResult(object=up.stream.info())


def free_write_result(result: WriteResult) -> None:
    """Write results own no handles; kept for symmetry with the other results."""


def free_upload(upload: Upload | None) -> UplinkError | None:
    """Cancel the upload scope and release its handle."""
    if upload is None:
        return None

    try:
        up = _lookup(upload, _UploadValue)
        if up is None:
            return InvalidHandleError("upload")
        up.scope.cancel()
        return None
    finally:
        universe.delete(upload._handle)


def free_upload_result(result: UploadResult) -> UplinkError | None:
    return free_upload(result.upload)


# 🔼⚙️🔚
