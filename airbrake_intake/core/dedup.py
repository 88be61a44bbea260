"""
Duplicate and reopen decisions for incoming notices.

Given the fingerprint of a notice and a way to look up an existing issue,
decide whether to create a new issue, count one more occurrence on the
existing one, and whether a closed issue should be reopened because the
error occurred again in an environment matching the reopen policy.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

import structlog

logger = structlog.get_logger()

REOPEN_NOTE = "Issue reopened after occurring again in {environment} environment."


class IssueRecord(Protocol):
    """What the decision needs to know about an existing issue."""
    occurrence_count: Optional[int]
    is_closed: bool


ExistingLookup = Callable[[str, Optional[str], Optional[str]], Optional[IssueRecord]]


@dataclass(frozen=True)
class ReopenWithNote:
    """Reopen a closed issue, leaving a note naming the triggering environment."""
    environment_name: str
    note: str


@dataclass(frozen=True)
class CreateNew:
    """No issue carries this fingerprint yet."""
    fingerprint: str
    occurrence_count: int = 1


@dataclass(frozen=True)
class IncrementOccurrence:
    """The error was seen before; bump the occurrence count."""
    fingerprint: str
    existing: IssueRecord
    occurrence_count: int
    reopen: Optional[ReopenWithNote] = None


Action = Union[CreateNew, IncrementOccurrence]


def should_reopen(environment_name: Optional[str], reopen_policy: Optional[str]) -> bool:
    """Check whether the environment name matches the reopen pattern (case-insensitive)."""
    if not environment_name or not environment_name.strip():
        return False
    if not reopen_policy or not reopen_policy.strip():
        return False

    try:
        pattern = re.compile(reopen_policy, re.IGNORECASE)
    except re.error as e:
        logger.warning("Invalid reopen pattern", pattern=reopen_policy, error=str(e))
        return False

    return pattern.search(environment_name) is not None


def decide(
    fingerprint: str,
    existing_lookup: ExistingLookup,
    environment_name: Optional[str],
    reopen_policy: Optional[str],
    project: Optional[str] = None,
    tracker: Optional[str] = None,
) -> Action:
    """Decide what to do with a notice carrying this fingerprint."""
    existing = existing_lookup(fingerprint, project, tracker)

    if existing is None:
        logger.debug("No issue for fingerprint", fingerprint=fingerprint)
        return CreateNew(fingerprint=fingerprint)

    occurrence_count = (existing.occurrence_count or 0) + 1

    reopen = None
    if existing.is_closed and should_reopen(environment_name, reopen_policy):
        reopen = ReopenWithNote(
            environment_name=environment_name,
            note=REOPEN_NOTE.format(environment=environment_name),
        )

    logger.debug(
        "Existing issue for fingerprint",
        fingerprint=fingerprint,
        occurrence_count=occurrence_count,
        reopen=reopen is not None,
    )

    return IncrementOccurrence(
        fingerprint=fingerprint,
        existing=existing,
        occurrence_count=occurrence_count,
        reopen=reopen,
    )
