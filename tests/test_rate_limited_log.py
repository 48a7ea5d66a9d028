"""
Tests for the shared rate-limited logging implementation.
"""
import threading
import pytest
from unittest.mock import patch, MagicMock

from cachetools import TTLCache

from speedrun_e2e import _rate_limited_log as rll
from speedrun_e2e._rate_limited_log import rate_limited_log, reset_rate_limits


class TestRateLimitedLog:
    """Tests for the rate-limited logging implementation."""

    def test_duplicate_suppressed(self):
        mock_logger = MagicMock()

        assert rate_limited_log("Test message", level="warning", logger_instance=mock_logger) is True
        mock_logger.warning.assert_called_once_with("Test message")

        mock_logger.reset_mock()
        assert rate_limited_log("Test message", level="warning", logger_instance=mock_logger) is False
        mock_logger.warning.assert_not_called()

    def test_level_and_message_are_part_of_key(self):
        mock_logger = MagicMock()

        rate_limited_log("Test message", level="warning", logger_instance=mock_logger)
        rate_limited_log("Test message", level="error", logger_instance=mock_logger)
        rate_limited_log("Different message", level="warning", logger_instance=mock_logger)

        mock_logger.error.assert_called_once_with("Test message")
        assert mock_logger.warning.call_count == 2

    def test_uses_cache_for_interval_under_lock(self):
        mock_lock = MagicMock()
        mock_logger = MagicMock()

        with patch.object(rll, "_log_cache_lock", mock_lock):
            rate_limited_log("Cached", "info", 30, mock_logger)

        mock_lock.__enter__.assert_called()
        cache = rll._log_caches[30]
        assert isinstance(cache, TTLCache)
        assert cache.ttl == 30
        assert "info:Cached" in cache

    def test_message_logged_again_after_expiry(self):
        mock_logger = MagicMock()
        now = [1000.0]
        cache = TTLCache(maxsize=16, ttl=60, timer=lambda: now[0])

        with patch.dict(rll._log_caches, {60: cache}):
            rate_limited_log("Flaky API", "warning", 60, mock_logger)
            rate_limited_log("Flaky API", "warning", 60, mock_logger)
            now[0] += 61
            rate_limited_log("Flaky API", "warning", 60, mock_logger)

        assert mock_logger.warning.call_count == 2

    def test_unknown_level_falls_back_to_warning(self):
        mock_logger = MagicMock(spec=["warning"])
        rate_limited_log("odd", level="verbose", logger_instance=mock_logger)
        mock_logger.warning.assert_called_once_with("odd")

    def test_reset(self):
        mock_logger = MagicMock()
        rate_limited_log("again", logger_instance=mock_logger)
        reset_rate_limits()
        rate_limited_log("again", logger_instance=mock_logger)
        assert mock_logger.warning.call_count == 2

    def test_concurrent_threads_log_once(self):
        mock_logger = MagicMock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            rate_limited_log("Shared message", "warning", 60, mock_logger)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        mock_logger.warning.assert_called_once_with("Shared message")
