"""Infrastructure protocols for the submission core.

Domain code depends on these abstractions; storage adapters implement them.
All methods return Ok[T] | Err[PersistenceError]: storage failures are
values, never invisible exceptions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from annuity_submission.core.errors import PersistenceError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime
from annuity_submission.model.application import Application
from annuity_submission.model.reconciliation import ReconciliationEntry


@runtime_checkable
class ApplicationStore(Protocol):
    """Versioned application storage keyed by application_ref.

    Invariants:
      - put() with expected_version=None inserts; the ref must be new.
      - put() with expected_version=n succeeds only while the stored
        version is n (compare-and-swap), and the new value's version must
        be greater than n. A lost race is Err(code="VERSION_CONFLICT").
      - Applications are never deleted.
    """

    def get(
        self, application_ref: str,
    ) -> Ok[Application] | Err[PersistenceError]: ...

    def put(
        self, app: Application, *, expected_version: int | None,
    ) -> Ok[None] | Err[PersistenceError]: ...

    def find_by_carrier_id(
        self, application_id: str,
    ) -> Ok[Application | None] | Err[PersistenceError]: ...

    def list_refs(self) -> Ok[tuple[str, ...]] | Err[PersistenceError]: ...


@runtime_checkable
class ReconciliationLog(Protocol):
    """Unknown-outcome gateway calls awaiting a human decision."""

    def record(
        self, entry: ReconciliationEntry,
    ) -> Ok[None] | Err[PersistenceError]: ...

    def open_entries(
        self, application_ref: str | None = None,
    ) -> Ok[tuple[ReconciliationEntry, ...]] | Err[PersistenceError]: ...

    def resolve(
        self, entry_id: str, *, resolution: str, resolved_at: UtcDatetime,
    ) -> Ok[ReconciliationEntry] | Err[PersistenceError]: ...
