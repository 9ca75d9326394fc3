from datetime import datetime, timedelta, timezone

import pytest

from recall.exceptions import InvalidStateError
from recall.schemas.flashcards import FlashcardSource, FlashcardStatus, SchedulingState
from recall.services import lifecycle

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def pending():
    return lifecycle.initial_state(FlashcardSource.AI_GENERATED, NOW)


def active():
    return lifecycle.initial_state(FlashcardSource.MANUAL, NOW)


def rejected():
    return lifecycle.reject(pending())


class TestInitialState:
    def test_manual_card_is_active_and_due_now(self):
        state = active()
        assert state == SchedulingState(FlashcardStatus.ACTIVE, 0, 2.5, NOW)

    def test_generated_card_waits_for_review(self):
        state = pending()
        assert state == SchedulingState(FlashcardStatus.PENDING_REVIEW, 0, 2.5, None)

    def test_accepts_raw_source_value(self):
        assert lifecycle.initial_state("manual", NOW).status is FlashcardStatus.ACTIVE


class TestTransitions:
    def test_approve_schedules_now(self):
        later = NOW + timedelta(hours=3)
        state = lifecycle.approve(pending(), later)
        assert state.status is FlashcardStatus.ACTIVE
        assert state.next_review_at == later

    def test_reject_clears_schedule(self):
        state = lifecycle.reject(pending())
        assert state.status is FlashcardStatus.REJECTED
        assert state.next_review_at is None

    @pytest.mark.parametrize("make_state", [active, rejected])
    def test_approve_requires_pending(self, make_state):
        with pytest.raises(InvalidStateError) as exc_info:
            lifecycle.approve(make_state(), NOW)
        assert "pending_review" in str(exc_info.value)
        assert exc_info.value.expected_status == "pending_review"

    @pytest.mark.parametrize("make_state", [active, rejected])
    def test_reject_requires_pending(self, make_state):
        with pytest.raises(InvalidStateError):
            lifecycle.reject(make_state())

    def test_review_reschedules_active_card(self):
        state = lifecycle.review(active(), 5, NOW)
        assert state.status is FlashcardStatus.ACTIVE
        assert state.interval == 1
        assert state.ease_factor == 2.6
        assert state.next_review_at == NOW + timedelta(days=1)

    @pytest.mark.parametrize("make_state", [pending, rejected])
    def test_review_requires_active(self, make_state):
        with pytest.raises(InvalidStateError):
            lifecycle.review(make_state(), 4, NOW)


class TestClosure:
    def test_pending_reaches_only_active_or_rejected(self):
        reachable = {
            lifecycle.approve(pending(), NOW).status,
            lifecycle.reject(pending()).status,
        }
        assert reachable == {FlashcardStatus.ACTIVE, FlashcardStatus.REJECTED}

    @pytest.mark.parametrize("make_state", [active, rejected])
    @pytest.mark.parametrize("target", list(FlashcardStatus))
    def test_terminal_states_do_not_change_status(self, make_state, target):
        state = make_state()
        if target is state.status:
            assert lifecycle.change_status(state, target, NOW) == state
        else:
            with pytest.raises(InvalidStateError):
                lifecycle.change_status(state, target, NOW)


class TestChangeStatus:
    def test_none_is_noop(self):
        state = pending()
        assert lifecycle.change_status(state, None, NOW) is state

    def test_pending_to_active_sets_next_review(self):
        state = lifecycle.change_status(pending(), FlashcardStatus.ACTIVE, NOW)
        assert state.next_review_at == NOW

    def test_pending_to_rejected_clears_next_review(self):
        state = lifecycle.change_status(pending(), "rejected", NOW)
        assert state.status is FlashcardStatus.REJECTED
        assert state.next_review_at is None
