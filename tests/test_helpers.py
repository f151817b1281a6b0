"""
Tests for small shared helpers: URL/date normalisation and retry backoff.
"""
from datetime import datetime, timezone

import pytest

from app.utils.helpers import normalize_url, parse_iso_datetime
from app.utils.retry import calculate_backoff, is_retryable_error


class TestNormalizeUrl:

    @pytest.mark.parametrize("raw, expected", [
        ("example.com/x", "https://example.com/x"),
        ("//example.com/x", "https://example.com/x"),
        ("http://example.com", "http://example.com"),
        ("https://example.com/a?b=1", "https://example.com/a?b=1"),
        ("example.com/x?next=https://other.com", "https://example.com/x?next=https://other.com"),
        ("ftp://files.example.com", "ftp://files.example.com"),
        ("  ", None),
        (None, None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_url(raw) == expected


class TestParseIsoDatetime:

    def test_zulu_suffix_becomes_naive_utc(self):
        assert parse_iso_datetime("2026-10-15T14:00:00Z") == datetime(2026, 10, 15, 14, 0)

    def test_offset_is_converted(self):
        assert parse_iso_datetime("2026-10-15T16:00:00+02:00") == datetime(2026, 10, 15, 14, 0)

    def test_accepts_datetime(self):
        aware = datetime(2026, 10, 15, 14, 0, tzinfo=timezone.utc)
        assert parse_iso_datetime(aware) == datetime(2026, 10, 15, 14, 0)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_iso_datetime("last tuesday")


class TestRetry:

    def test_backoff_grows_and_caps(self):
        assert calculate_backoff(1, base_delay=2.0, jitter=False) == 2.0
        assert calculate_backoff(3, base_delay=2.0, jitter=False) == 8.0
        assert calculate_backoff(10, base_delay=2.0, max_delay=30.0, jitter=False) == 30.0

    def test_jitter_bounded(self):
        for _ in range(20):
            assert 4.0 <= calculate_backoff(2, base_delay=2.0) <= 5.0

    @pytest.mark.parametrize("error, expected", [
        (ConnectionError("reset"), True),
        (TimeoutError(), True),
        (RuntimeError("429 Too Many Requests"), True),
        (RuntimeError("503 backend unavailable"), True),
        (ValueError("invalid property id"), False),
    ])
    def test_retryable(self, error, expected):
        assert is_retryable_error(error) is expected
