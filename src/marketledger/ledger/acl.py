"""Capability table for private bet details.

A handle is readable only by subjects it has been explicitly granted to. The
engine grants every new bet handle to itself and to the bettor; market
creators get nothing by default. This is independent of the creator checks
applied to resolution and emergency recovery.
"""

from __future__ import annotations

from collections import defaultdict
from threading import Lock

from marketledger.errors import Unauthorized


class AccessControlList:
    def __init__(self) -> None:
        self._grants: dict[str, set[str]] = defaultdict(set)
        self._lock = Lock()

    def grant(self, handle: str, subject: str) -> None:
        with self._lock:
            self._grants[handle].add(subject)

    def check(self, handle: str, subject: str) -> bool:
        grants = self._grants.get(handle)
        return grants is not None and subject in grants

    def require(self, handle: str, subject: str) -> None:
        if not self.check(handle, subject):
            raise Unauthorized(f"{subject} is not allowed to access {handle}")

    def subjects(self, handle: str) -> set[str]:
        return set(self._grants.get(handle, ()))
