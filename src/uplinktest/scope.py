#
# SPDX-FileCopyrightText: Copyright (c) 2025 provide.io llc. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#

"""Cancellation scopes shared by projects and the uploads they start."""

from __future__ import annotations

import threading

from attrs import define, field

from uplinktest.errors import CanceledError


@define(eq=False)
class Scope:
    """A cancelable scope. Canceling a scope cancels all of its children.

    A canceled child detaches from its parent, so a long-lived project scope
    only holds the uploads that are still live."""

    name: str = field(default="")
    _parent: Scope | None = field(default=None, init=False)
    _event: threading.Event = field(factory=threading.Event, init=False)
    _children: list[Scope] = field(factory=list, init=False)
    _lock: threading.Lock = field(factory=threading.Lock, init=False)

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    @property
    def children(self) -> tuple[Scope, ...]:
        with self._lock:
            return tuple(self._children)

    def child(self, name: str = "") -> Scope:
        """Create a scope that is canceled together with this one."""
        scope = Scope(name=name or self.name)
        with self._lock:
            if self._event.is_set():
                scope._event.set()
                return scope
            scope._parent = self
            self._children.append(scope)
        return scope

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = self._children
            self._children = []
            parent, self._parent = self._parent, None
        for child in children:
            child.cancel()
        if parent is not None:
            parent._detach(self)

    def _detach(self, child: Scope) -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def check(self) -> None:
        """Raise CanceledError if the scope has been canceled."""
        if self._event.is_set():
            raise CanceledError(f"scope {self.name!r} canceled" if self.name else "scope canceled")


def root_scope(name: str = "") -> Scope:
    return Scope(name=name)


# 🔼⚙️🔚
