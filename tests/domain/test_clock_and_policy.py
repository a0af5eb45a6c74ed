"""Tests for the clock, business-day arithmetic and the lifecycle policy."""

from datetime import datetime, timezone

import pytest

from intake_kernel.domain.clock import DeterministicClock, add_business_days
from intake_kernel.domain.policy import DEFAULT_POLICY, LifecyclePolicy
from intake_kernel.domain.statuses import PlatformType

UTC = timezone.utc


class TestAddBusinessDays:
    def test_midweek_rolls_over_weekend(self):
        wednesday = datetime(2024, 1, 3, 12, tzinfo=UTC)
        assert add_business_days(wednesday, 3) == datetime(2024, 1, 8, 12, tzinfo=UTC)

    def test_friday_plus_one_is_monday(self):
        friday = datetime(2024, 1, 5, 9, tzinfo=UTC)
        assert add_business_days(friday, 1) == datetime(2024, 1, 8, 9, tzinfo=UTC)

    def test_saturday_start(self):
        saturday = datetime(2024, 1, 6, 9, tzinfo=UTC)
        assert add_business_days(saturday, 1) == datetime(2024, 1, 8, 9, tzinfo=UTC)

    def test_zero_days_is_identity(self):
        start = datetime(2024, 1, 3, tzinfo=UTC)
        assert add_business_days(start, 0) == start

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            add_business_days(datetime(2024, 1, 3, tzinfo=UTC), -1)


class TestDeterministicClock:
    def test_fixed_until_advanced(self):
        clock = DeterministicClock(datetime(2024, 1, 3, 12, tzinfo=UTC))
        assert clock.now() == clock.now()
        clock.advance(1)
        assert clock.now() == datetime(2024, 1, 3, 12, 0, 1, tzinfo=UTC)
        clock.advance_hours(24)
        assert clock.now() == datetime(2024, 1, 4, 12, 0, 1, tzinfo=UTC)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(100)
        target = datetime(2025, 6, 1, tzinfo=UTC)
        clock.set_time(target)
        assert clock.now() == target


class TestLifecyclePolicy:
    def test_defaults(self):
        assert DEFAULT_POLICY.execution_window_business_days == 3
        assert DEFAULT_POLICY.retry_cooldown_hours == 24
        assert DEFAULT_POLICY.gated_platform == PlatformType.BETMGM
        assert DEFAULT_POLICY.gated_platform_name == "BetMGM"
        assert len(DEFAULT_POLICY.platforms) == 11

    def test_display_name_falls_back_to_enum_value(self):
        policy = LifecyclePolicy(platforms=DEFAULT_POLICY.platforms[:2])
        assert policy.display_name(PlatformType.PAYPAL) == "PAYPAL"

    def test_links(self):
        assert DEFAULT_POLICY.client_link("abc") == "/agent/clients/abc"
        assert DEFAULT_POLICY.review_link("abc") == "/backoffice/client-management?client=abc"
