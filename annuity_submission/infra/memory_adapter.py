"""In-memory implementations of the infrastructure protocols.

Used by the test suite and by simulation-mode setups. Not production
storage: nothing survives the process.
"""

from __future__ import annotations

from typing import final

from annuity_submission.core.errors import PersistenceError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime
from annuity_submission.model.application import Application
from annuity_submission.model.reconciliation import ReconciliationEntry


def _persistence_error(
    operation: str, detail: str, code: str = "PERSISTENCE_ERROR",
) -> PersistenceError:
    return PersistenceError(
        message=detail,
        code=code,
        timestamp=UtcDatetime.now(),
        source=f"memory_adapter.{operation}",
        operation=operation,
    )


@final
class InMemoryApplicationStore:
    """Versioned application store with compare-and-swap puts."""

    def __init__(self) -> None:
        self._apps: dict[str, Application] = {}

    def get(
        self, application_ref: str,
    ) -> Ok[Application] | Err[PersistenceError]:
        app = self._apps.get(application_ref)
        if app is None:
            return Err(_persistence_error(
                "get", f"Application not found: {application_ref}", "NOT_FOUND",
            ))
        return Ok(app)

    def put(
        self, app: Application, *, expected_version: int | None,
    ) -> Ok[None] | Err[PersistenceError]:
        current = self._apps.get(app.application_ref)
        if expected_version is None:
            if current is not None:
                return Err(_persistence_error(
                    "put", f"Application already exists: {app.application_ref}",
                    "VERSION_CONFLICT",
                ))
        else:
            if current is None:
                return Err(_persistence_error(
                    "put", f"Application not found: {app.application_ref}", "NOT_FOUND",
                ))
            if current.version != expected_version:
                return Err(_persistence_error(
                    "put",
                    f"Version conflict on {app.application_ref}: "
                    f"expected {expected_version}, stored {current.version}",
                    "VERSION_CONFLICT",
                ))
            if app.version <= expected_version:
                return Err(_persistence_error(
                    "put",
                    f"New version {app.version} must exceed {expected_version}",
                    "VERSION_CONFLICT",
                ))
        self._apps[app.application_ref] = app
        return Ok(None)

    def find_by_carrier_id(
        self, application_id: str,
    ) -> Ok[Application | None] | Err[PersistenceError]:
        for app in self._apps.values():
            if app.carrier_application_id == application_id:
                return Ok(app)
        return Ok(None)

    def list_refs(self) -> Ok[tuple[str, ...]] | Err[PersistenceError]:
        return Ok(tuple(self._apps))

    def count(self) -> int:
        """Test-only helper."""
        return len(self._apps)


@final
class InMemoryReconciliationLog:
    def __init__(self) -> None:
        self._entries: dict[str, ReconciliationEntry] = {}

    def record(
        self, entry: ReconciliationEntry,
    ) -> Ok[None] | Err[PersistenceError]:
        if entry.entry_id in self._entries:
            return Err(_persistence_error(
                "record", f"Duplicate reconciliation entry: {entry.entry_id}",
            ))
        self._entries[entry.entry_id] = entry
        return Ok(None)

    def open_entries(
        self, application_ref: str | None = None,
    ) -> Ok[tuple[ReconciliationEntry, ...]] | Err[PersistenceError]:
        return Ok(tuple(
            e for e in self._entries.values()
            if e.is_open and (application_ref is None or e.application_ref == application_ref)
        ))

    def resolve(
        self, entry_id: str, *, resolution: str, resolved_at: UtcDatetime,
    ) -> Ok[ReconciliationEntry] | Err[PersistenceError]:
        entry = self._entries.get(entry_id)
        if entry is None:
            return Err(_persistence_error(
                "resolve", f"Reconciliation entry not found: {entry_id}", "NOT_FOUND",
            ))
        if not entry.is_open:
            return Err(_persistence_error(
                "resolve", f"Reconciliation entry already resolved: {entry_id}",
            ))
        resolved = entry.resolve(resolution, resolved_at)
        self._entries[entry_id] = resolved
        return Ok(resolved)

    def count(self) -> int:
        """Test-only helper."""
        return len(self._entries)
