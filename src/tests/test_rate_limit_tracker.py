"""
Test suite for RateLimitTracker component
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest

from spapi_adapter.rate_limit_tracker import RateLimitTracker, RetryPolicy, rate_limit_header


class TestRateLimitTracker:
    """Test suite for throttle delay computation"""

    def test_restore_delay_with_rate_limit_header_returns_inverse_rate(self):
        """
        Test that the header (requests/second) wins over the static restore rate
        """
        # Arrange
        tracker = RateLimitTracker()

        # Act
        result = tracker.restore_delay({'x-amzn-ratelimit-limit': '2'}, 45)

        # Assert
        assert result == 0.5

    def test_restore_delay_with_non_numeric_header_uses_restore_rate(self):
        """
        Test that an unusable header falls back to the operation's restore rate
        """
        # Arrange
        tracker = RateLimitTracker()

        # Act
        result = tracker.restore_delay({'x-amzn-ratelimit-limit': 'n/a'}, 1.5)

        # Assert
        assert result == 1.5

    @pytest.mark.parametrize('header_value', ['-2', '0', 'nan', 'inf'])
    def test_restore_delay_with_unusable_rate_limit_header_uses_restore_rate(self, header_value):
        """
        Test that negative, zero and non-finite header values fall back to the restore rate
        """
        # Arrange
        tracker = RateLimitTracker()

        # Act
        result = tracker.restore_delay({'x-amzn-ratelimit-limit': header_value}, 1.0)

        # Assert
        assert result == 1.0

    @pytest.mark.parametrize('restore_rate', [-1, 0, float('nan')])
    def test_restore_delay_with_unusable_restore_rate_returns_none(self, restore_rate):
        """
        Test that no invalid delay ever reaches time.sleep
        """
        # Arrange
        tracker = RateLimitTracker()

        # Act & Assert
        assert tracker.restore_delay({'x-amzn-ratelimit-limit': '-2'}, restore_rate) is None

    def test_restore_delay_without_header_or_restore_rate_returns_none(self):
        """
        Test that no delay is applied when nothing is known
        """
        # Arrange
        tracker = RateLimitTracker()

        # Act & Assert
        assert tracker.restore_delay({}, None) is None

    def test_restore_delay_is_capped_by_policy_max_delay(self):
        """
        Test that max_delay caps long restore rates
        """
        # Arrange
        tracker = RateLimitTracker(RetryPolicy(max_delay=10))

        # Act & Assert
        assert tracker.restore_delay({}, 60) == 10

    def test_rate_limit_header_matches_case_insensitively(self):
        """
        Test header lookup regardless of casing
        """
        # Act & Assert
        assert rate_limit_header({'X-Amzn-RateLimit-Limit': '0.0167'}) == '0.0167'
        assert rate_limit_header(None) is None


class TestRetryPolicy:
    """Test suite for retry bounds"""

    def test_default_policy_is_unbounded(self):
        """
        Test that the default policy always allows another retry
        """
        # Arrange
        policy = RetryPolicy()

        # Act & Assert
        assert policy.allows(0)
        assert policy.allows(10_000)

    def test_policy_with_max_attempts_stops_after_limit(self):
        """
        Test that max_attempts bounds the number of retries
        """
        # Arrange
        policy = RetryPolicy(max_attempts=2)

        # Act & Assert
        assert policy.allows(0)
        assert policy.allows(1)
        assert not policy.allows(2)

    def test_expiry_delay_first_retry_is_immediate_then_exponential(self):
        """
        Test token-expiry backoff growth and cap
        """
        # Arrange
        policy = RetryPolicy(expiry_backoff=1.0, max_delay=3.0)

        # Act
        delays = [policy.expiry_delay(attempt) for attempt in range(4)]

        # Assert
        assert delays == [0.0, 1.0, 2.0, 3.0]

    def test_expiry_delay_without_backoff_is_zero(self):
        """
        Test that the default policy never waits before refreshing
        """
        # Act & Assert
        assert RetryPolicy().expiry_delay(5) == 0.0
