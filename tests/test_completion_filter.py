"""
Tests for the completion rules shared by migration and carry-forward.
"""

from datetime import date, timedelta

import pytest

from sprintsync.core.exceptions import InvalidArgumentError
from sprintsync.models.enums import EntityKind, StoryStatus, TaskStatus
from sprintsync.services.completion import CompletionFilter, local_today

TODAY = date(2025, 3, 14)


@pytest.fixture
def rules():
    return CompletionFilter(today=lambda: TODAY)


class TestEligibility:
    """Which items still have work left"""

    @pytest.mark.parametrize("status", ["backlog", "to_do", "in_progress", "qa_review"])
    def test_open_story_statuses_are_eligible(self, rules, status):
        assert rules.is_eligible(EntityKind.STORY, status) is True

    @pytest.mark.parametrize("status", ["done", "cancelled"])
    def test_finished_story_statuses_are_not_eligible(self, rules, status):
        assert rules.is_eligible(EntityKind.STORY, status) is False

    @pytest.mark.parametrize("status", ["to_do", "in_progress", "qa_review", "blocked"])
    def test_open_task_statuses_are_eligible(self, rules, status):
        assert rules.is_eligible(EntityKind.TASK, status) is True

    @pytest.mark.parametrize("status", ["done", "cancelled"])
    def test_finished_task_statuses_are_not_eligible(self, rules, status):
        assert rules.is_eligible(EntityKind.TASK, status) is False

    def test_subtask_uses_completion_flag(self, rules):
        assert rules.is_eligible(EntityKind.SUBTASK, False) is True
        assert rules.is_eligible(EntityKind.SUBTASK, True) is False
        assert rules.is_eligible(EntityKind.SUBTASK, None) is True

    def test_accepts_enum_members_and_plain_strings(self, rules):
        assert rules.is_eligible("story", StoryStatus.DONE) is False
        assert rules.is_eligible(EntityKind.TASK, TaskStatus.BLOCKED) is True

    def test_unknown_status_is_rejected(self, rules):
        with pytest.raises(InvalidArgumentError):
            rules.is_eligible(EntityKind.STORY, "almost_done")

    def test_kind_without_completion_rule_is_rejected(self, rules):
        with pytest.raises(InvalidArgumentError):
            rules.is_eligible(EntityKind.BACKLOG_STORY, "backlog")

    def test_unknown_kind_is_rejected(self, rules):
        with pytest.raises(ValueError):
            rules.is_eligible("epic", "to_do")


class TestOverdue:
    """Due-date checks against the injected clock"""

    def test_no_due_date_is_never_overdue(self, rules):
        assert rules.is_overdue(None) is False

    def test_yesterday_is_overdue(self, rules):
        assert rules.is_overdue(TODAY - timedelta(days=1)) is True

    def test_due_today_is_not_overdue(self, rules):
        assert rules.is_overdue(TODAY) is False

    def test_future_is_not_overdue(self, rules):
        assert rules.is_overdue(TODAY + timedelta(days=3)) is False


class TestCarryForwardRule:
    """Unfinished or past due items follow a carried story"""

    def test_done_but_overdue_task_is_carried(self, rules):
        assert rules.should_carry_forward(EntityKind.TASK, "done", TODAY - timedelta(days=2)) is True

    def test_done_task_due_later_is_dropped(self, rules):
        assert rules.should_carry_forward(EntityKind.TASK, "done", TODAY + timedelta(days=2)) is False

    def test_in_progress_task_without_due_date_is_carried(self, rules):
        assert rules.should_carry_forward(EntityKind.TASK, "in_progress", None) is True

    def test_completed_subtask_past_due_is_carried(self, rules):
        assert rules.should_carry_forward(EntityKind.SUBTASK, True, TODAY - timedelta(days=1)) is True

    def test_completed_subtask_without_due_date_is_dropped(self, rules):
        assert rules.should_carry_forward(EntityKind.SUBTASK, True, None) is False


class TestLocalToday:
    def test_returns_a_date(self):
        assert isinstance(local_today("Europe/Berlin"), date)

    def test_default_clock_is_used_when_none_given(self):
        assert isinstance(CompletionFilter().today(), date)
