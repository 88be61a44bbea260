"""
Notice Processor - create-or-update workflow for incoming notices.

    Raw XML → Notice → Fingerprint → Decision → Issue store

New fingerprints create an issue whose subject carries the first eight
characters of the fingerprint. Known fingerprints bump the occurrence count,
and closed issues are reopened when the notice environment matches the
reopen pattern.
"""

import threading
from dataclasses import dataclass
from typing import Optional, Union

import structlog

from airbrake_intake.config import Settings, get_settings
from airbrake_intake.core.dedup import Action, CreateNew, IncrementOccurrence, decide
from airbrake_intake.core.fingerprint import fingerprint as compute_fingerprint
from airbrake_intake.core.notice import Notice, parse_notice
from airbrake_intake.services.issue_store import (
    DuplicateIssueError,
    IssueFields,
    IssueHandle,
    IssueStore,
    get_issue_store,
)
from airbrake_intake.utils.logging import LogContext, log_operation

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of processing one notice."""
    notice: Notice
    fingerprint: str
    action: Action
    issue: IssueHandle

    @property
    def created(self) -> bool:
        return isinstance(self.action, CreateNew)

    @property
    def reopened(self) -> bool:
        return isinstance(self.action, IncrementOccurrence) and self.action.reopen is not None


def build_subject(notice: Notice, fingerprint: str, max_length: int = 255) -> str:
    """Build the issue subject: ``[<fp8>] <class> <message>``.

    The class is left out when absent or already leading the message.
    """
    error = notice.error
    prefix = f"[{fingerprint[:8]}]"

    if not error.class_name or error.message.startswith(f"{error.class_name}:"):
        subject = f"{prefix} {error.message}"
    else:
        subject = f"{prefix} {error.class_name} {error.message}"

    return subject[:max_length].strip()


class NoticeProcessor:
    """Runs the parse → fingerprint → decide → apply pipeline for one notice at a time."""

    def __init__(
        self,
        store: Optional[IssueStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store if store is not None else get_issue_store()
        self.settings = settings or get_settings()
        self.log = logger.bind(component="notice_processor")
        # Serializes decide and apply so repeat notices never lose a count
        self._lock = threading.Lock()

    def process(
        self,
        raw: Union[str, bytes],
        reopen_policy: Optional[str] = None,
    ) -> ProcessingResult:
        """Process a raw notice document.

        Args:
            raw: The XML notice
            reopen_policy: Reopen pattern overriding the configured one

        Raises:
            InvalidNotice, UnsupportedVersion: the document was rejected
        """
        with log_operation("process_notice", logger=self.log) as op:
            notice = parse_notice(raw)
            fingerprint = compute_fingerprint(notice.error)
            op["fingerprint"] = fingerprint

            with LogContext(fingerprint=fingerprint, environment=notice.environment_name):
                result = self.process_notice(notice, fingerprint, reopen_policy)

            op["issue_id"] = result.issue.id
            op["created"] = result.created
            return result

    def process_notice(
        self,
        notice: Notice,
        fingerprint: str,
        reopen_policy: Optional[str] = None,
    ) -> ProcessingResult:
        """Decide and apply the action for an already parsed notice."""
        with self._lock:
            return self._apply(notice, fingerprint, reopen_policy)

    def _apply(
        self,
        notice: Notice,
        fingerprint: str,
        reopen_policy: Optional[str],
    ) -> ProcessingResult:
        policy = reopen_policy if reopen_policy is not None else self.settings.reopen_regexp
        project = notice.params.get("project")
        tracker = notice.params.get("tracker")

        action = decide(
            fingerprint,
            self.store.find_by_fingerprint,
            notice.environment_name,
            policy,
            project=project,
            tracker=tracker,
        )

        if isinstance(action, CreateNew):
            try:
                issue = self.store.create(self._issue_fields(notice, fingerprint, action))
                return ProcessingResult(notice=notice, fingerprint=fingerprint, action=action, issue=issue)
            except DuplicateIssueError:
                # Another notice with this fingerprint won the create
                self.log.info("Issue created concurrently, counting occurrence instead")
                action = decide(
                    fingerprint,
                    self.store.find_by_fingerprint,
                    notice.environment_name,
                    policy,
                    project=project,
                    tracker=tracker,
                )
                if isinstance(action, CreateNew):
                    raise

        issue = action.existing
        self.store.update_occurrence_count(issue, action.occurrence_count)

        if action.reopen is not None:
            self.store.reopen(issue, action.reopen.note)
            self.log.info(
                "Closed issue reopened",
                issue_id=issue.id,
                environment=action.reopen.environment_name,
            )

        return ProcessingResult(notice=notice, fingerprint=fingerprint, action=action, issue=issue)

    def _issue_fields(self, notice: Notice, fingerprint: str, action: CreateNew) -> IssueFields:
        params = notice.params
        return IssueFields(
            subject=build_subject(notice, fingerprint, self.settings.subject_max_length),
            fingerprint=fingerprint,
            project=params.get("project"),
            tracker=params.get("tracker"),
            category=params.get("category"),
            priority=params.get("priority"),
            assignee=params.get("assignee"),
            environment_name=notice.environment_name,
            occurrence_count=action.occurrence_count,
        )
