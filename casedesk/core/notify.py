"""Transient user notifications (toasts).

Rendering belongs to the embedding UI; the library records each toast and
logs it. A loading toast is later resolved in place by passing its id to
``success``/``error``.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Toast:
    id: int
    kind: str  # loading | success | error
    message: str


class ToastLog:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.history: list[Toast] = []
        self.active: dict[int, Toast] = {}

    def _push(self, kind: str, message: str, toast_id: int | None) -> int:
        tid = toast_id if toast_id is not None else next(self._ids)
        t = Toast(id=tid, kind=kind, message=message)
        self.history.append(t)
        if kind == "loading":
            self.active[tid] = t
        else:
            self.active.pop(tid, None)
        log = logger.warning if kind == "error" else logger.info
        log("[TOAST][%s] %s", kind.upper(), message)
        return tid

    def loading(self, message: str) -> int:
        return self._push("loading", message, None)

    def success(self, message: str, *, toast_id: int | None = None) -> int:
        return self._push("success", message, toast_id)

    def error(self, message: str, *, toast_id: int | None = None) -> int:
        return self._push("error", message, toast_id)

    def messages(self, kind: str | None = None) -> list[str]:
        return [t.message for t in self.history if kind is None or t.kind == kind]
