"""
Unit tests for the visibility rules.

Covers:
- Rule precedence (takedown, then schedule, then the publish flag)
- Boundary instants (now == scheduled_at, now == takedown_at)
- Inverted windows and naive datetimes
- Agreement between the Python rules and the SQL predicates
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from core.domain.announcement import (
    ChangeType,
    LifecycleState,
    VisibilityReason,
    evaluate_visibility,
    publish_transition,
    resolve_visibility,
)
from infrastructure.database.models.content import Announcement
from services.announcements import AnnouncementStatus, status_condition

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
PAST = NOW - timedelta(days=1)
FUTURE = NOW + timedelta(days=1)


class TestEvaluateVisibility:
    def test_published_without_window_is_visible(self):
        decision = evaluate_visibility(True, None, None, NOW)
        assert decision.visible is True
        assert decision.reason == VisibilityReason.PUBLISHED
        assert decision.state == LifecycleState.PUBLISHED

    def test_unpublished_is_hidden(self):
        decision = evaluate_visibility(False, None, None, NOW)
        assert decision.visible is False
        assert decision.reason == VisibilityReason.UNPUBLISHED
        assert decision.state == LifecycleState.DRAFT

    def test_future_schedule_hides_published(self):
        decision = evaluate_visibility(True, FUTURE, None, NOW)
        assert decision.visible is False
        assert decision.reason == VisibilityReason.SCHEDULED

    def test_elapsed_schedule_shows_published(self):
        assert resolve_visibility(True, PAST, None, NOW) is True

    def test_elapsed_schedule_does_not_publish_unpublished(self):
        decision = evaluate_visibility(False, PAST, None, NOW)
        assert decision.visible is False
        assert decision.reason == VisibilityReason.UNPUBLISHED

    def test_elapsed_takedown_hides(self):
        decision = evaluate_visibility(True, None, PAST, NOW)
        assert decision.visible is False
        assert decision.reason == VisibilityReason.TAKEN_DOWN

    def test_future_takedown_keeps_visible(self):
        assert resolve_visibility(True, None, FUTURE, NOW) is True

    def test_takedown_wins_over_schedule(self):
        """Elapsed takedown outranks a pending schedule."""
        decision = evaluate_visibility(True, FUTURE, PAST, NOW)
        assert decision.reason == VisibilityReason.TAKEN_DOWN

    def test_inverted_window_is_always_hidden(self):
        scheduled = NOW + timedelta(hours=2)
        takedown = NOW + timedelta(hours=1)
        for offset in (0, 1, 2, 3):
            at = NOW + timedelta(hours=offset)
            assert resolve_visibility(True, scheduled, takedown, at) is False

    def test_visible_exactly_at_schedule(self):
        assert resolve_visibility(True, NOW, None, NOW) is True

    def test_hidden_exactly_at_takedown(self):
        assert resolve_visibility(True, None, NOW, NOW) is False

    def test_naive_datetimes_are_utc(self):
        naive_future = FUTURE.replace(tzinfo=None)
        assert resolve_visibility(True, naive_future, None, NOW) is False
        assert resolve_visibility(True, None, None, NOW.replace(tzinfo=None)) is True

    def test_other_timezones_are_normalised(self):
        plus_two = timezone(timedelta(hours=2))
        # 13:00+02:00 is 11:00 UTC, already elapsed at NOW
        scheduled = datetime(2026, 3, 1, 13, 0, tzinfo=plus_two)
        assert resolve_visibility(True, scheduled, None, NOW) is True

    def test_same_inputs_same_answer(self):
        first = evaluate_visibility(True, PAST, FUTURE, NOW)
        second = evaluate_visibility(True, PAST, FUTURE, NOW)
        assert first == second


class TestPublishTransition:
    def test_publish(self):
        assert publish_transition(False, True) == ChangeType.PUBLISH

    def test_unpublish(self):
        assert publish_transition(True, False) == ChangeType.UNPUBLISH

    @pytest.mark.parametrize("flag", [True, False])
    def test_no_flip(self, flag):
        assert publish_transition(flag, flag) is None


class TestSqlPredicates:
    """The SQL filters must select exactly what the Python rules select."""

    @pytest.fixture
    async def grid(self, db_session, category):
        times = [None, PAST, NOW, FUTURE]
        rows = []
        for index, (is_published, scheduled_at, takedown_at) in enumerate(
            itertools.product([True, False], times, times)
        ):
            announcement = Announcement(
                title=f"Grid {index}",
                slug=f"grid-{index}",
                content="body",
                category_id=category.id,
                is_published=is_published,
                scheduled_at=scheduled_at,
                takedown_at=takedown_at,
            )
            db_session.add(announcement)
            rows.append(announcement)
        await db_session.commit()
        return {
            row.id: evaluate_visibility(row.is_published, row.scheduled_at, row.takedown_at, NOW)
            for row in rows
        }

    async def test_visible_at_matches_rules(self, db_session, grid):
        result = await db_session.execute(
            select(Announcement.id).where(Announcement.visible_at(NOW))
        )
        selected = set(result.scalars().all())
        expected = {row_id for row_id, decision in grid.items() if decision.visible}
        assert selected == expected
        assert expected

    @pytest.mark.parametrize("status", list(AnnouncementStatus))
    async def test_status_condition_matches_rules(self, db_session, grid, status):
        result = await db_session.execute(
            select(Announcement.id).where(status_condition(status, NOW))
        )
        selected = set(result.scalars().all())
        expected = {
            row_id for row_id, decision in grid.items() if decision.state.value == status.value
        }
        assert selected == expected

    async def test_states_partition_rows(self, db_session, grid):
        seen = []
        for status in AnnouncementStatus:
            result = await db_session.execute(
                select(Announcement.id).where(status_condition(status, NOW))
            )
            seen.extend(result.scalars().all())
        assert sorted(seen) == sorted(grid)
