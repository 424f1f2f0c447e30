import pytest

from core.rate_limiter import MemoryRateLimiter, RateLimitRule


@pytest.fixture
def limiter():
    return MemoryRateLimiter(RateLimitRule(requests=3, window=60))


class TestMemoryRateLimiter:
    """Sliding-window request ceiling"""

    def test_allows_up_to_limit(self, limiter):
        results = [limiter.check_rate_limit("1.2.3.4", now=100.0 + i) for i in range(3)]

        assert all(allowed for allowed, _ in results)
        assert [info["remaining"] for _, info in results] == [2, 1, 0]

    def test_blocks_over_limit(self, limiter):
        for i in range(3):
            limiter.check_rate_limit("1.2.3.4", now=100.0 + i)

        allowed, info = limiter.check_rate_limit("1.2.3.4", now=110.0)

        assert not allowed
        assert info["limit"] == 3
        assert info["remaining"] == 0
        # Oldest request (t=100) leaves the window at t=160
        assert info["retry_after"] == 50

    def test_window_slides(self, limiter):
        for i in range(3):
            limiter.check_rate_limit("1.2.3.4", now=100.0 + i)

        allowed, _ = limiter.check_rate_limit("1.2.3.4", now=160.5)
        assert allowed

    def test_clients_are_independent(self, limiter):
        for i in range(3):
            limiter.check_rate_limit("1.2.3.4", now=100.0 + i)

        allowed, _ = limiter.check_rate_limit("5.6.7.8", now=103.0)
        assert allowed

    def test_blocked_requests_not_recorded(self, limiter):
        for i in range(5):
            limiter.check_rate_limit("1.2.3.4", now=100.0 + i)

        allowed, _ = limiter.check_rate_limit("1.2.3.4", now=161.0)
        assert allowed

    def test_unknown_rule_allows(self, limiter):
        allowed, info = limiter.check_rate_limit("1.2.3.4", rule_key="missing")
        assert allowed
        assert info["remaining"] is None

    def test_named_rule(self, limiter):
        limiter.add_rule("strict", RateLimitRule(requests=1, window=10))

        assert limiter.check_rate_limit("1.2.3.4", "strict", now=0.0)[0]
        assert not limiter.check_rate_limit("1.2.3.4", "strict", now=1.0)[0]
        assert limiter.check_rate_limit("1.2.3.4", now=1.0)[0]

    def test_idle_clients_are_forgotten(self):
        limiter = MemoryRateLimiter(RateLimitRule(requests=5, window=1))
        for i in range(1000):
            limiter.check_rate_limit(f"10.0.{i // 256}.{i % 256}", now=0.0)
        assert len(limiter.windows) == 1000

        limiter.check_rate_limit("192.168.0.1", now=10000.0)

        assert list(limiter.windows) == ["default:192.168.0.1"]

    def test_active_clients_survive_pruning(self):
        limiter = MemoryRateLimiter(
            RateLimitRule(requests=5, window=60), prune_threshold=10
        )
        for i in range(10):
            limiter.check_rate_limit(f"client-{i}", now=0.0)

        limiter.check_rate_limit("late", now=30.0)

        assert len(limiter.windows) == 11
        # Still within the window, so the earlier requests keep counting
        for _ in range(4):
            limiter.check_rate_limit("client-0", now=31.0)
        assert not limiter.check_rate_limit("client-0", now=32.0)[0]

    def test_table_growth_is_bounded(self):
        limiter = MemoryRateLimiter(
            RateLimitRule(requests=1, window=1), prune_threshold=10
        )
        for i in range(500):
            limiter.check_rate_limit(f"client-{i}", now=float(i * 2))

        assert len(limiter.windows) <= 10

    def test_prune_keeps_recent_windows(self):
        limiter = MemoryRateLimiter(
            RateLimitRule(requests=3, window=60), prune_threshold=2
        )
        limiter.check_rate_limit("idle", now=0.0)
        limiter.check_rate_limit("active", now=90.0)
        limiter.check_rate_limit("new", now=100.0)

        assert sorted(limiter.windows) == ["default:active", "default:new"]
