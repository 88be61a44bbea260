"""Tests for duplicate and reopen decisions."""

from dataclasses import dataclass
from typing import Optional

import pytest


@dataclass
class FakeIssue:
    occurrence_count: Optional[int] = 1
    is_closed: bool = False


def lookup_returning(issue):
    calls = []

    def lookup(fingerprint, project, tracker):
        calls.append((fingerprint, project, tracker))
        return issue

    lookup.calls = calls
    return lookup


class TestShouldReopen:
    """Tests for the reopen policy match."""

    @pytest.mark.parametrize(
        "environment,policy,expected",
        [
            ("staging", "stag.*", True),
            ("STAGING", "stag.*", True),
            ("pre-staging", "stag", True),
            ("staging", "prod", False),
            ("staging", None, False),
            ("staging", "", False),
            (None, "stag.*", False),
            ("  ", "stag.*", False),
            ("staging", "[unclosed", False),
        ],
    )
    def test_should_reopen(self, environment, policy, expected):
        """Test reopen pattern matching."""
        from airbrake_intake.core.dedup import should_reopen

        assert should_reopen(environment, policy) is expected


class TestDecide:
    """Tests for decide."""

    @pytest.mark.smoke
    def test_create_new(self):
        """Test unknown fingerprint creates a new issue."""
        from airbrake_intake.core.dedup import CreateNew, decide

        lookup = lookup_returning(None)

        action = decide("abc", lookup, "production", None, project="shop", tracker="Bug")

        assert action == CreateNew(fingerprint="abc", occurrence_count=1)
        assert lookup.calls == [("abc", "shop", "Bug")]

    def test_increment_existing(self):
        """Test increment existing."""
        from airbrake_intake.core.dedup import IncrementOccurrence, decide

        issue = FakeIssue(occurrence_count=4)

        action = decide("abc", lookup_returning(issue), "production", None)

        assert isinstance(action, IncrementOccurrence)
        assert action.existing is issue
        assert action.occurrence_count == 5
        assert action.reopen is None

    def test_missing_count_starts_at_zero(self):
        """Test missing count starts at zero."""
        from airbrake_intake.core.dedup import decide

        action = decide("abc", lookup_returning(FakeIssue(occurrence_count=None)), None, None)

        assert action.occurrence_count == 1

    def test_reopen_closed_matching_environment(self):
        """Test reopen closed matching environment."""
        from airbrake_intake.core.dedup import IncrementOccurrence, decide

        issue = FakeIssue(occurrence_count=2, is_closed=True)

        action = decide("abc", lookup_returning(issue), "staging", "stag.*")

        assert isinstance(action, IncrementOccurrence)
        assert action.occurrence_count == 3
        assert action.reopen is not None
        assert action.reopen.environment_name == "staging"
        assert "staging" in action.reopen.note

    def test_no_reopen_when_pattern_does_not_match(self):
        """Test no reopen when pattern does not match."""
        from airbrake_intake.core.dedup import IncrementOccurrence, decide

        issue = FakeIssue(is_closed=True)

        action = decide("abc", lookup_returning(issue), "staging", "prod")

        assert isinstance(action, IncrementOccurrence)
        assert action.reopen is None

    def test_no_reopen_for_open_issue(self):
        """Test no reopen for open issue."""
        from airbrake_intake.core.dedup import decide

        action = decide("abc", lookup_returning(FakeIssue(is_closed=False)), "staging", "stag.*")

        assert action.reopen is None

    def test_no_reopen_without_environment_or_policy(self):
        """Test no reopen without environment or policy."""
        from airbrake_intake.core.dedup import decide

        issue = FakeIssue(is_closed=True)

        assert decide("abc", lookup_returning(issue), None, "stag.*").reopen is None
        assert decide("abc", lookup_returning(issue), "staging", None).reopen is None
