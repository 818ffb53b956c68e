from datetime import datetime, timedelta, timezone

from geoserv.ratelimit import PacketRateLimiter

WALK = ("walk", "player")
TALK = ("talk", "report")


def _at(seconds):
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def test_allow_honors_configured_delay():
    limiter = PacketRateLimiter({WALK: timedelta(milliseconds=300)})
    now = _at(100)

    assert limiter.allow(now, *WALK) is True
    assert limiter.allow(now + timedelta(milliseconds=250), *WALK) is False
    assert limiter.allow(now + timedelta(milliseconds=300), *WALK) is True


def test_tracks_packet_keys_independently():
    limiter = PacketRateLimiter({WALK: timedelta(milliseconds=300)})
    now = _at(200)

    assert limiter.allow(now, *WALK) is True
    assert limiter.allow(now + timedelta(milliseconds=10), *TALK) is True
    assert limiter.allow(now + timedelta(milliseconds=10), *WALK) is False


def test_numeric_interval_in_seconds():
    limiter = PacketRateLimiter({WALK: 1})
    now = _at(50)

    assert limiter.allow(now, *WALK) is True
    assert limiter.allow(now + timedelta(milliseconds=999), *WALK) is False
    assert limiter.allow(now + timedelta(seconds=1), *WALK) is True


def test_non_positive_interval_never_throttles():
    limiter = PacketRateLimiter({WALK: timedelta(0)})
    now = _at(10)

    assert limiter.allow(now, *WALK) is True
    assert limiter.allow(now, *WALK) is True


def test_no_rules_allows_everything():
    limiter = PacketRateLimiter()
    now = _at(10)

    assert all(limiter.allow(now, *WALK) for _ in range(5))


def test_rejected_packet_does_not_reset_window():
    limiter = PacketRateLimiter({WALK: timedelta(milliseconds=300)})
    now = _at(100)

    assert limiter.allow(now, *WALK) is True
    assert limiter.allow(now + timedelta(milliseconds=200), *WALK) is False
    # Window is measured from the last accepted packet, not the rejected one.
    assert limiter.allow(now + timedelta(milliseconds=300), *WALK) is True