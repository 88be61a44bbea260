"""Services around the notice core: issue store and create-or-update workflow."""

from .issue_store import (
    DuplicateIssueError,
    InMemoryIssueStore,
    IssueFields,
    IssueHandle,
    IssueStatus,
    IssueStore,
    get_issue_store,
    reset_issue_store,
)
from .notice_processor import NoticeProcessor, ProcessingResult, build_subject

__all__ = [
    "IssueStore",
    "InMemoryIssueStore",
    "IssueFields",
    "IssueHandle",
    "IssueStatus",
    "DuplicateIssueError",
    "get_issue_store",
    "reset_issue_store",
    "NoticeProcessor",
    "ProcessingResult",
    "build_subject",
]
