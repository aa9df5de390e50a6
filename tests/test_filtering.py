"""Tests for task filtering."""

from datetime import timedelta

import pytest

from taskview.core.filtering import FilterCriteria, apply_filters
from taskview.core.tasks import EffectiveStatus, Priority, TaskStatus


@pytest.fixture
def sample_tasks(make_task, today):
    return [
        make_task("1", priority=Priority.HIGH, details="Prepare quarterly report"),
        make_task("2", priority=Priority.LOW, details="Water plants", display_id="T-0002"),
        make_task("3", priority=Priority.HIGH, details="Fix login bug",
                  deadline=today - timedelta(days=2)),
        make_task("4", priority=Priority.MEDIUM, details="Review REPORT draft",
                  status=TaskStatus.COMPLETED, start_time=today - timedelta(days=1)),
        make_task("5", priority=Priority.HIGH, details="Deploy",
                  status=TaskStatus.IN_PROGRESS, start_time=today),
    ]


class TestApplyFilters:
    def test_empty_criteria_matches_all(self, sample_tasks, today):
        assert apply_filters(sample_tasks, FilterCriteria(), as_of=today) == sample_tasks

    def test_priority_keeps_order(self, sample_tasks, today):
        result = apply_filters(sample_tasks, FilterCriteria(priority=Priority.HIGH), as_of=today)
        assert [t.id for t in result] == ["1", "3", "5"]

    def test_search_is_case_insensitive(self, sample_tasks, today):
        result = apply_filters(sample_tasks, FilterCriteria(search_text="report"), as_of=today)
        assert [t.id for t in result] == ["1", "4"]

    def test_search_matches_display_id(self, sample_tasks, today):
        result = apply_filters(sample_tasks, FilterCriteria(search_text="t-0002"), as_of=today)
        assert [t.id for t in result] == ["2"]

    def test_whitespace_search_matches_all(self, sample_tasks, today):
        result = apply_filters(sample_tasks, FilterCriteria(search_text="   "), as_of=today)
        assert len(result) == len(sample_tasks)

    def test_search_ignores_surrounding_whitespace(self, sample_tasks, today):
        result = apply_filters(sample_tasks, FilterCriteria(search_text=" Deploy "), as_of=today)
        assert [t.id for t in result] == ["5"]

    def test_expired_is_filterable(self, sample_tasks, today):
        result = apply_filters(
            sample_tasks, FilterCriteria(status=EffectiveStatus.EXPIRED), as_of=today
        )
        assert [t.id for t in result] == ["3"]

    def test_status_uses_effective_status(self, sample_tasks, today):
        # Task 3 is stored Pending but its deadline has passed.
        result = apply_filters(
            sample_tasks, FilterCriteria(status=EffectiveStatus.PENDING), as_of=today
        )
        assert [t.id for t in result] == ["1", "2"]

    def test_predicates_are_combined(self, sample_tasks, today):
        criteria = FilterCriteria(
            status=EffectiveStatus.PENDING, priority=Priority.HIGH, search_text="quarterly"
        )
        assert [t.id for t in apply_filters(sample_tasks, criteria, as_of=today)] == ["1"]

    def test_no_match(self, sample_tasks, today):
        assert apply_filters(sample_tasks, FilterCriteria(search_text="zzz"), as_of=today) == []

    def test_is_empty(self):
        assert FilterCriteria().is_empty
        assert not FilterCriteria(priority=Priority.LOW).is_empty
