from types import SimpleNamespace

import pytest

from bailbond import rate_limiter
from bailbond.services.geolocation_service import (
    format_location,
    is_within_jurisdiction,
    parse_location,
)
from bailbond.shared.sanitization import sanitize_notes
from bailbond.shared.validators import validate_credential_id, validate_image_data_url


def test_format_location_uses_six_decimals():
    assert format_location(21.3069444, -157.8583333) == "21.306944, -157.858333"


def test_parse_location_round_trips_formatted_value():
    assert parse_location(" 21.306944 ,-157.858333 ") == (21.306944, -157.858333)


@pytest.mark.parametrize(
    "value",
    ["", "   ", "21.3", "21.3, -157.8, 4", "north, west", "-91, 0", "0, 181"],
)
def test_parse_location_rejects_bad_input(value):
    with pytest.raises(ValueError):
        parse_location(value)


def test_jurisdiction_defaults_to_hawaii():
    assert is_within_jurisdiction(19.896766, -155.582782)  # Big Island
    assert not is_within_jurisdiction(37.774929, -122.419418)  # San Francisco


def test_sanitize_notes():
    assert sanitize_notes(None) is None
    assert sanitize_notes("   ") is None
    assert sanitize_notes(" at work ") == "at work"
    assert sanitize_notes('"quoted" & <tag>') == "&quot;quoted&quot; &amp; &lt;tag&gt;"
    with pytest.raises(ValueError):
        sanitize_notes("x" * 2001)


def test_biometric_validators():
    assert validate_image_data_url("data:image/png;base64,iVBORw0KGgo=")
    assert validate_credential_id("AQIDBA==") == "AQIDBA=="
    with pytest.raises(ValueError):
        validate_image_data_url("data:text/plain;base64,aGVsbG8=")
    with pytest.raises(ValueError):
        validate_credential_id("not base64!")


def test_rate_limit_counts_in_memory_without_redis():
    results = [rate_limiter.check_rate_limit("check_in:10.0.0.1", 2, 60) for _ in range(3)]

    assert [allowed for allowed, _, _ in results] == [True, True, False]
    assert results[-1][1] == 2
    assert 0 < results[-1][2] <= 60


def test_rate_limit_keys_are_independent():
    rate_limiter.check_rate_limit("check_in:10.0.0.1", 1, 60)
    allowed, count, _ = rate_limiter.check_rate_limit("check_in:10.0.0.2", 1, 60)
    assert allowed and count == 1


def test_expired_counters_are_swept(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter, "time", SimpleNamespace(time=lambda: now[0]))
    monkeypatch.setattr(rate_limiter, "last_cleanup_time", 0)

    for i in range(50):
        rate_limiter.check_rate_limit(f"check_in:10.0.1.{i}", 5, 60)
    assert len(rate_limiter.memory_cache) == 50

    now[0] += 3600
    rate_limiter.check_rate_limit("check_in:10.0.2.1", 5, 60)

    assert list(rate_limiter.memory_cache) == ["check_in:10.0.2.1"]


def test_sweep_waits_for_cleanup_interval(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter, "time", SimpleNamespace(time=lambda: now[0]))
    monkeypatch.setattr(rate_limiter, "last_cleanup_time", now[0])

    rate_limiter.check_rate_limit("check_in:10.0.1.1", 5, 10)
    now[0] += 30
    rate_limiter.check_rate_limit("check_in:10.0.1.2", 5, 10)

    # First counter expired but the sweep interval has not elapsed yet
    assert "check_in:10.0.1.1" in rate_limiter.memory_cache
