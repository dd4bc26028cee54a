#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""In-process satellite backend.

A ``MemoryNetwork`` holds any number of ``MemorySatellite`` instances keyed
by address. Satellites issue serialized access grants, keep buckets and
committed objects in memory, and support API key revocation. The module
level ``default_network`` is what ``get_backend()`` returns, so tests can
register a satellite there and point ``SATELLITE_0_ADDR``/``UPLINK_0_ACCESS``
at it.

Usage:
    satellite = default_network.add_satellite()
    satellite.create_bucket("photos")
    os.environ["SATELLITE_0_ADDR"] = satellite.address
    os.environ["UPLINK_0_ACCESS"] = satellite.issue_access()
"""

from __future__ import annotations

import base64
import binascii
import itertools
import json
import secrets
import threading
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime

from attrs import define, field
from provide.foundation.logger import get_logger

from uplinktest.errors import (
    AccessGrantError,
    BucketNotFoundError,
    DialError,
    PermissionDeniedError,
    ProjectClosedError,
    UploadDoneError,
)
from uplinktest.scope import Scope
from uplinktest.uplink import ObjectInfo

log = get_logger(__name__)

REQUIRED_GRANT_FIELDS = ("satellite_addr", "api_key")
_ports = itertools.count(7777)


@define(frozen=True)
class MemoryGrant:
    """Parsed form of a memory-backend access grant."""

    satellite_addr: str
    api_key: str
    passphrase: str = ""

    @classmethod
    def issue(cls, satellite_addr: str, passphrase: str = "passphrase") -> MemoryGrant:
        """A grant for ``satellite_addr`` carrying a new random API key."""
        return cls(satellite_addr=satellite_addr, api_key=secrets.token_hex(16), passphrase=passphrase)

    def serialize(self) -> str:
        payload = json.dumps(
            {"satellite_addr": self.satellite_addr, "api_key": self.api_key, "passphrase": self.passphrase},
            sort_keys=True,
        )
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")

    @classmethod
    def parse(cls, serialized: str) -> MemoryGrant:
        if not serialized:
            raise AccessGrantError("access grant is empty")
        try:
            payload = json.loads(base64.urlsafe_b64decode(serialized.encode("ascii")))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise AccessGrantError(f"malformed access grant: {e}") from e

        if not isinstance(payload, dict):
            raise AccessGrantError("malformed access grant: expected an object")
        missing = [name for name in REQUIRED_GRANT_FIELDS if not isinstance(payload.get(name), str)]
        if missing:
            raise AccessGrantError(f"access grant is missing {', '.join(missing)}")

        return cls(
            satellite_addr=payload["satellite_addr"],
            api_key=payload["api_key"],
            passphrase=str(payload.get("passphrase", "")),
        )


@define
class MemoryObject:
    """A committed object."""

    key: str
    data: bytes
    created: datetime
    expires: datetime | None = None

    def info(self) -> ObjectInfo:
        return ObjectInfo(
            key=self.key,
            created=self.created,
            expires=self.expires,
            content_length=len(self.data),
        )


class MemorySatellite:
    """A satellite that keeps API keys, buckets and objects in memory."""

    def __init__(self, address: str) -> None:
        self.address = address
        self._lock = threading.Lock()
        self._api_keys: set[str] = set()
        self._revoked: set[str] = set()
        self._buckets: dict[str, dict[str, MemoryObject]] = {}
        self._log = log.bind(satellite=address)

    def issue_access(self, passphrase: str = "passphrase") -> str:
        """Create a new API key and return a serialized grant for it."""
        grant = MemoryGrant.issue(self.address, passphrase)
        self.admit(grant.api_key)
        self._log.debug("Access issued")
        return grant.serialize()

    def admit(self, api_key: str) -> None:
        with self._lock:
            self._api_keys.add(api_key)

    def revoke(self, api_key: str) -> None:
        with self._lock:
            self._revoked.add(api_key)
        self._log.info("API key revoked")

    def authorize(self, api_key: str) -> None:
        with self._lock:
            if api_key not in self._api_keys:
                raise PermissionDeniedError("unknown API key")
            if api_key in self._revoked:
                raise PermissionDeniedError("API key revoked")

    def create_bucket(self, name: str) -> None:
        with self._lock:
            self._buckets.setdefault(name, {})

    def objects(self, bucket: str) -> dict[str, MemoryObject]:
        """Return a snapshot of the committed objects in ``bucket``."""
        with self._lock:
            if bucket not in self._buckets:
                raise BucketNotFoundError(bucket)
            return dict(self._buckets[bucket])

    def has_bucket(self, name: str) -> bool:
        with self._lock:
            return name in self._buckets

    def store(self, bucket: str, obj: MemoryObject) -> None:
        with self._lock:
            if bucket not in self._buckets:
                raise BucketNotFoundError(bucket)
            self._buckets[bucket][obj.key] = obj


class MemoryUpload:
    """Buffers written data until commit stores it on the satellite."""

    def __init__(
        self,
        session: MemorySession,
        bucket: str,
        key: str,
        expires: datetime | None,
        scope: Scope,
    ) -> None:
        self._session = session
        self._bucket = bucket
        self._key = key
        self._expires = expires
        self._scope = scope
        self._buffer = bytearray()
        self._created = datetime.now(UTC)
        self._committed = False
        self._aborted = False

    def _check_writable(self) -> None:
        self._scope.check()
        if self._committed:
            raise UploadDoneError("upload already committed")
        if self._aborted:
            raise UploadDoneError("upload aborted")

    def write(self, data: bytes) -> int:
        self._check_writable()
        self._buffer.extend(data)
        return len(data)

    def commit(self) -> None:
        self._check_writable()
        obj = MemoryObject(key=self._key, data=bytes(self._buffer), created=self._created, expires=self._expires)
        self._session.satellite.store(self._bucket, obj)
        self._committed = True

    def abort(self) -> None:
        if self._committed:
            raise UploadDoneError("upload already committed")
        self._aborted = True

    def info(self) -> ObjectInfo:
        return ObjectInfo(
            key=self._key,
            created=self._created,
            expires=self._expires,
            content_length=len(self._buffer),
        )


@define(eq=False)
class MemorySession:
    """An open project against a MemorySatellite."""

    satellite: MemorySatellite
    grant: MemoryGrant
    scope: Scope
    maximum_concurrent: int | None = None
    closed: bool = field(default=False, init=False)

    def close(self) -> None:
        self.closed = True

    def revoke_access(self, grant: MemoryGrant) -> None:
        if self.closed:
            raise ProjectClosedError()
        self.satellite.authorize(self.grant.api_key)
        self.satellite.revoke(grant.api_key)

    def upload_object(self, bucket: str, key: str, *, expires: datetime | None, scope: Scope) -> MemoryUpload:
        if self.closed:
            raise ProjectClosedError()
        if not self.satellite.has_bucket(bucket):
            raise BucketNotFoundError(bucket)
        return MemoryUpload(self, bucket, key, expires, scope)


class MemoryNetwork:
    """SatelliteBackend that dials satellites living in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._satellites: dict[str, MemorySatellite] = {}
        self._provision_buckets: tuple[str, ...] | None = None

    def add_satellite(self, address: str | None = None) -> MemorySatellite:
        if address is None:
            address = f"127.0.0.1:{next(_ports)}"
        satellite = MemorySatellite(address)
        with self._lock:
            self._satellites[address] = satellite
        log.debug("Satellite added", satellite=address)
        return satellite

    def remove_satellite(self, address: str) -> None:
        with self._lock:
            self._satellites.pop(address, None)

    def get_satellite(self, address: str) -> MemorySatellite | None:
        with self._lock:
            return self._satellites.get(address)

    @contextmanager
    def provisioning(self, *buckets: str) -> Generator[None, None, None]:
        """
        Answer dials to unknown addresses with a new satellite.

        The new satellite trusts the API key of the grant that dialed it and
        starts with ``buckets``. A fresh process has no satellites, so this is
        how the memory backend serves grants issued elsewhere.

        Args:
            *buckets: Buckets created on every provisioned satellite
        """
        with self._lock:
            previous, self._provision_buckets = self._provision_buckets, buckets
        try:
            yield
        finally:
            with self._lock:
                self._provision_buckets = previous

    def clear(self) -> None:
        with self._lock:
            self._satellites.clear()

    def parse_access(self, serialized: str) -> MemoryGrant:
        return MemoryGrant.parse(serialized)

    def open_project(self, grant: MemoryGrant, *, maximum_concurrent: int | None, scope: Scope) -> MemorySession:
        with self._lock:
            satellite = self._satellites.get(grant.satellite_addr)
            buckets = self._provision_buckets
            if satellite is None and buckets is not None:
                satellite = self._satellites[grant.satellite_addr] = MemorySatellite(grant.satellite_addr)
                satellite.admit(grant.api_key)
                for bucket in buckets:
                    satellite.create_bucket(bucket)
                log.info("Satellite provisioned", satellite=grant.satellite_addr, buckets=list(buckets))
        if satellite is None:
            raise DialError(grant.satellite_addr)
        satellite.authorize(grant.api_key)
        return MemorySession(satellite=satellite, grant=grant, scope=scope, maximum_concurrent=maximum_concurrent)


default_network = MemoryNetwork()


def get_backend() -> MemoryNetwork:
    return default_network


# 🔼⚙️🔚
