"""Issue store collaborator used by the notice workflow.

The workflow only talks to the ``IssueStore`` protocol. ``InMemoryIssueStore``
is the bundled implementation: issues are keyed by (fingerprint, project,
tracker), so two notices with the same fingerprint can never create two
issues in the same scope.

Example usage:
    ```python
    from airbrake_intake.services.issue_store import get_issue_store

    store = get_issue_store()
    issue = store.find_by_fingerprint(fingerprint, "shop", "Bug")
    if issue is None:
        issue = store.create(IssueFields(subject="[9f0c1a2b] boom", fingerprint=fingerprint))
    ```
"""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)


class IssueStatus(str, Enum):
    """Issue states as seen by the workflow."""
    NEW = "new"
    CLOSED = "closed"


@dataclass
class JournalEntry:
    """A note left on an issue."""
    note: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class IssueFields:
    """Fields for a new issue."""
    subject: str
    fingerprint: str
    project: Optional[str] = None
    tracker: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    assignee: Optional[str] = None
    environment_name: Optional[str] = None
    occurrence_count: int = 1


@dataclass
class IssueHandle:
    """An issue owned by the store."""
    id: int
    subject: str
    fingerprint: str
    project: Optional[str] = None
    tracker: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    assignee: Optional[str] = None
    environment_name: Optional[str] = None
    occurrence_count: Optional[int] = 1
    status: IssueStatus = IssueStatus.NEW
    journal: list[JournalEntry] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.status == IssueStatus.CLOSED


class IssueStore(Protocol):
    """Interface of the external issue tracker."""

    def find_by_fingerprint(
        self,
        fingerprint: str,
        project: Optional[str],
        tracker: Optional[str],
    ) -> Optional[IssueHandle]:
        ...

    def create(self, fields: IssueFields) -> IssueHandle:
        ...

    def update_occurrence_count(self, handle: IssueHandle, count: int) -> None:
        ...

    def reopen(self, handle: IssueHandle, note: str) -> None:
        ...


class DuplicateIssueError(Exception):
    """Raised when an issue with the same fingerprint already exists in scope."""
    pass


class InMemoryIssueStore:
    """Thread-safe in-memory issue store."""

    def __init__(self, default_status: IssueStatus = IssueStatus.NEW):
        self.default_status = default_status
        self._issues: dict[int, IssueHandle] = {}
        self._by_fingerprint: dict[tuple[str, Optional[str], Optional[str]], int] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def find_by_fingerprint(
        self,
        fingerprint: str,
        project: Optional[str],
        tracker: Optional[str],
    ) -> Optional[IssueHandle]:
        with self._lock:
            issue_id = self._by_fingerprint.get((fingerprint, project, tracker))
            return self._issues.get(issue_id) if issue_id is not None else None

    def create(self, fields: IssueFields) -> IssueHandle:
        key = (fields.fingerprint, fields.project, fields.tracker)
        with self._lock:
            if key in self._by_fingerprint:
                raise DuplicateIssueError(f"issue for fingerprint {fields.fingerprint} already exists")

            issue = IssueHandle(
                id=self._next_id,
                subject=fields.subject,
                fingerprint=fields.fingerprint,
                project=fields.project,
                tracker=fields.tracker,
                category=fields.category,
                priority=fields.priority,
                assignee=fields.assignee,
                environment_name=fields.environment_name,
                occurrence_count=fields.occurrence_count,
                status=self.default_status,
            )
            self._issues[issue.id] = issue
            self._by_fingerprint[key] = issue.id
            self._next_id += 1

        logger.info("Issue created", issue_id=issue.id, fingerprint=issue.fingerprint)
        return issue

    def update_occurrence_count(self, handle: IssueHandle, count: int) -> None:
        with self._lock:
            self._get(handle.id).occurrence_count = count

    def reopen(self, handle: IssueHandle, note: str) -> None:
        with self._lock:
            issue = self._get(handle.id)
            issue.status = self.default_status
            issue.journal.append(JournalEntry(note=note))
        logger.info("Issue reopened", issue_id=handle.id, fingerprint=handle.fingerprint)

    def close(self, handle: IssueHandle) -> None:
        with self._lock:
            self._get(handle.id).status = IssueStatus.CLOSED

    def get(self, issue_id: int) -> Optional[IssueHandle]:
        with self._lock:
            return self._issues.get(issue_id)

    def list_issues(self) -> list[IssueHandle]:
        with self._lock:
            return list(self._issues.values())

    def _get(self, issue_id: int) -> IssueHandle:
        try:
            return self._issues[issue_id]
        except KeyError:
            raise KeyError(f"unknown issue {issue_id}") from None


# Global instance
_issue_store: Optional[InMemoryIssueStore] = None


def get_issue_store() -> InMemoryIssueStore:
    """Get or create the global issue store."""
    global _issue_store
    if _issue_store is None:
        _issue_store = InMemoryIssueStore()
    return _issue_store


def reset_issue_store() -> None:
    """Drop the global issue store."""
    global _issue_store
    _issue_store = None
