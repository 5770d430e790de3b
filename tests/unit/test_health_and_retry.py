"""제공자 헬스 레지스트리 / 재시도 정책 테스트"""
import pytest

from src.classification.health import ProviderHealthRegistry
from src.classification.strategy import RetryPolicy
from src.core.exceptions import (
    MalformedResponseException,
    ProviderRateLimitedException,
    ProviderTimeoutException,
    ProviderUnavailableException,
)


class TestProviderHealthRegistry:
    def test_down_after_threshold_then_recovers(self, fake_clock):
        registry = ProviderHealthRegistry(fail_threshold=3, open_duration_sec=60, clock=fake_clock)

        registry.record_failure("gemini", "429")
        registry.record_failure("gemini", "429")
        assert not registry.is_down("gemini")

        registry.record_failure("gemini", "429")
        assert registry.is_down("gemini")
        assert registry.get_remaining_open_time("gemini") == pytest.approx(60)

        fake_clock.advance(60)
        assert not registry.is_down("gemini")
        # 윈도우가 지나도 연속 실패 수는 성공 전까지 유지
        assert registry.get("gemini").consecutive_failures == 3

    def test_success_resets_streak(self, fake_clock):
        registry = ProviderHealthRegistry(fail_threshold=2, open_duration_sec=60, clock=fake_clock)
        registry.record_failure("ollama", "timeout")
        registry.record_success("ollama", 120.0)
        registry.record_failure("ollama", "timeout")

        stats = registry.get("ollama")
        assert stats.consecutive_failures == 1
        assert stats.total_attempts == 3
        assert stats.success_count == 1
        assert stats.success_rate == pytest.approx(1 / 3)
        assert stats.avg_latency_ms == pytest.approx(120.0)
        assert not registry.is_down("ollama")

    def test_unknown_provider_is_not_down(self):
        assert not ProviderHealthRegistry(fail_threshold=1, open_duration_sec=1).is_down("nobody")

    def test_snapshot_fields(self, fake_clock):
        registry = ProviderHealthRegistry(fail_threshold=3, open_duration_sec=60, clock=fake_clock)
        registry.record_failure("gemini", "key=secret HTTP 500")
        snapshot = registry.snapshot()[0]
        assert snapshot["name"] == "gemini"
        assert snapshot["consecutive_failures"] == 1
        assert snapshot["last_failure"] is not None
        assert "secret" not in snapshot["last_error"]


class TestRetryPolicy:
    def test_remote_rate_limit_waits_window(self):
        policy = RetryPolicy.rate_limited(max_attempts=3, rate_limit_delay_s=60, error_delay_s=5)
        assert policy.delay_for(1, ProviderRateLimitedException("gemini")) == 60
        assert policy.delay_for(2, ProviderTimeoutException("gemini", 30)) == 5
        assert policy.delay_for(2, MalformedResponseException("gemini", "x")) == 5

    def test_local_linear_backoff(self):
        policy = RetryPolicy.linear(max_attempts=3, retry_delay_s=5)
        assert policy.delay_for(1, ProviderTimeoutException("ollama", 180)) == 5
        assert policy.delay_for(2, ProviderTimeoutException("ollama", 180)) == 10

    def test_should_retry(self):
        policy = RetryPolicy.linear(max_attempts=3, retry_delay_s=5)
        timeout = ProviderTimeoutException("ollama", 180)
        assert policy.should_retry(timeout, 1)
        assert policy.should_retry(timeout, 2)
        assert not policy.should_retry(timeout, 3)
        assert not policy.should_retry(ProviderUnavailableException("ollama", "connection refused"), 1)

    def test_no_retry(self):
        policy = RetryPolicy.no_retry()
        assert policy.max_attempts == 1
        assert not policy.should_retry(RuntimeError("x"), 1)
