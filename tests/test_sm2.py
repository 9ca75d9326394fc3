"""
Tests for the SM-2 engine.

Tests cover:
- Interval progression 0 -> 1 -> 6 -> interval * ease
- Ease factor adjustment and the 1.3 floor
- Failure reset
- Input validation
"""

from datetime import datetime, timedelta, timezone

import pytest

from recall.services.scheduling import sm2

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class TestScenarios:
    def test_first_success(self):
        result = sm2.compute(0, 2.5, 5, NOW)
        assert result.interval == 1
        assert result.ease_factor == 2.6
        assert result.next_review_at == NOW + timedelta(days=1)

    def test_second_success(self):
        result = sm2.compute(1, 2.5, 5, NOW)
        assert result.interval == 6
        assert result.ease_factor == 2.6
        assert result.next_review_at == NOW + timedelta(days=6)

    def test_failure_resets_interval(self):
        result = sm2.compute(6, 2.5, 2, NOW)
        assert result.interval == 0
        assert result.ease_factor == 2.5
        assert result.next_review_at == NOW

    def test_later_interval_uses_ease(self):
        result = sm2.compute(6, 2.5, 4, NOW)
        assert result.interval == 15
        assert result.ease_factor == 2.5

    def test_interval_rounds_half_up(self):
        # 5 * 2.5 = 12.5
        assert sm2.compute(5, 2.5, 4, NOW).interval == 13

    def test_quality_three_lowers_ease(self):
        result = sm2.compute(6, 2.5, 3, NOW)
        assert result.ease_factor == 2.36


class TestProperties:
    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_failure_keeps_ease_exactly(self, quality):
        for ease in (1.3, 1.87, 2.5, 3.1):
            result = sm2.compute(10, ease, quality, NOW)
            assert result.interval == 0
            assert result.ease_factor == ease

    def test_ease_never_below_floor(self):
        for interval in (0, 1, 2, 10, 100):
            for quality in range(6):
                for ease in (1.3, 1.35, 1.5, 2.5):
                    assert sm2.compute(interval, ease, quality, NOW).ease_factor >= 1.3

    def test_success_interval_is_monotonic(self):
        for interval in (1, 2, 3, 7, 30, 365):
            for quality in (3, 4, 5):
                for ease in (1.0, 1.3, 2.0, 2.5):
                    assert sm2.compute(interval, ease, quality, NOW).interval >= interval

    def test_ease_stored_with_two_decimals(self):
        ease = 2.5
        for _ in range(20):
            ease = sm2.compute(6, ease, 4 if ease < 2.0 else 3, NOW).ease_factor
            assert round(ease, 2) == ease


class TestValidation:
    @pytest.mark.parametrize("quality", [-1, 6, 10])
    def test_quality_out_of_range(self, quality):
        with pytest.raises(ValueError):
            sm2.compute(0, 2.5, quality, NOW)

    def test_quality_must_be_integer(self):
        with pytest.raises(ValueError):
            sm2.compute(0, 2.5, 3.5, NOW)

    def test_negative_interval(self):
        with pytest.raises(ValueError):
            sm2.compute(-1, 2.5, 4, NOW)
