"""
Two-phase bookkeeping for optimistic UI updates.

A widget shows its new value as soon as the user acts. The ledger records the
change as ``pending`` together with the last value the server confirmed. The
API call then settles it:

* ``confirmed``: the server accepted the change; its returned value is shown
  until fresh data is loaded.
* ``failed``: the server rejected it or could not be reached; the display
  rolls back to the last confirmed value and the error is kept for display.

``reconcile`` runs after a reload and drops settled entries, so fresh server
data always wins over anything the ledger remembers.
"""
from __future__ import annotations

import time
from typing import Any, Mapping, MutableMapping

PENDING = "pending"
CONFIRMED = "confirmed"
FAILED = "failed"


class OptimisticLedger:
    def __init__(self, store: MutableMapping[str, dict], clock=time.monotonic):
        # ``store`` is usually a session-state slice so entries survive reruns.
        self._store = store
        self._clock = clock

    def begin(self, key: str, server_value: Any, optimistic_value: Any) -> dict:
        previous = self._store.get(key)
        if previous and previous["state"] == PENDING:
            # Stacked clicks keep the oldest confirmed value as the rollback target.
            server_value = previous["server_value"]
        entry = {
            "state": PENDING,
            "server_value": server_value,
            "value": optimistic_value,
            "error": None,
            "started_at": self._clock(),
        }
        self._store[key] = entry
        return entry

    def confirm(self, key: str, server_value: Any) -> None:
        entry = self._store.get(key)
        if entry is None:
            return
        entry.update(state=CONFIRMED, server_value=server_value, value=server_value, error=None)

    def fail(self, key: str, error: str) -> None:
        entry = self._store.get(key)
        if entry is None:
            return
        entry.update(state=FAILED, value=entry["server_value"], error=str(error))

    def state(self, key: str) -> str | None:
        entry = self._store.get(key)
        return entry["state"] if entry else None

    def display_value(self, key: str, server_value: Any) -> Any:
        entry = self._store.get(key)
        if entry is None:
            return server_value
        return entry["value"]

    def failures(self) -> list[tuple[str, str]]:
        return [(key, entry["error"]) for key, entry in self._store.items() if entry["state"] == FAILED]

    def reconcile(self, server_values: Mapping[str, Any] | None = None) -> list[str]:
        """Drop settled entries after a reload and return their keys.

        Pending entries stay unless ``server_values`` already shows the
        optimistic value, which means the mutation landed before the reload.
        """
        server_values = server_values or {}
        dropped = []
        for key, entry in list(self._store.items()):
            settled = entry["state"] in (CONFIRMED, FAILED)
            landed = entry["state"] == PENDING and key in server_values and server_values[key] == entry["value"]
            if settled or landed:
                del self._store[key]
                dropped.append(key)
        return dropped

    def stale(self, max_age_seconds: float) -> list[str]:
        now = self._clock()
        return [
            key
            for key, entry in self._store.items()
            if entry["state"] == PENDING and now - entry["started_at"] > max_age_seconds
        ]
