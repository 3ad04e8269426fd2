"""
Rate limiter tests.

Fixed window per key with an injectable clock.
"""

import pytest

from motorbersih import create_app
from motorbersih.extensions import db
from motorbersih.services.auth_service import issue_token
from motorbersih.services.rate_limit_service import FixedWindowRateLimiter

from conftest import TEST_CONFIG, auth_headers


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    decisions = [limiter.hit("ip:1") for _ in range(3)]
    assert [d.allowed for d in decisions] == [True, True, True]
    assert [d.remaining for d in decisions] == [2, 1, 0]

    blocked = limiter.hit("ip:1")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 61


def test_window_expiry_resets_bucket():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.hit("k").allowed
    clock.now += 5
    assert not limiter.hit("k").allowed
    clock.now += 5
    assert limiter.hit("k").allowed


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock())
    assert limiter.hit("user:1").allowed
    assert limiter.hit("user:2").allowed
    assert not limiter.hit("user:1").allowed


def test_expired_buckets_are_pruned():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(limit=5, window_seconds=10, clock=clock)
    for i in range(20):
        limiter.hit(f"ip:{i}")
    clock.now += 11
    limiter.hit("ip:new")
    assert list(limiter._buckets) == ["ip:new"]


def test_reset():
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock())
    limiter.hit("a")
    limiter.reset("a")
    assert limiter.hit("a").allowed


@pytest.mark.parametrize("limit,window", [(0, 60), (5, 0)])
def test_rejects_bad_configuration(limit, window):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(limit=limit, window_seconds=window)


def test_api_returns_429_with_retry_after():
    app = create_app({**TEST_CONFIG, "RATE_LIMIT_REQUESTS": 2})
    with app.app_context():
        db.create_all()
        headers = auth_headers(issue_token(7, "cashier"))
        client = app.test_client()

        statuses = [client.get("/api/operators/", headers=headers).status_code for _ in range(3)]
        assert statuses == [200, 200, 429]

        resp = client.get("/api/operators/", headers=headers)
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) >= 1

        # Another caller has its own bucket
        other = auth_headers(issue_token(8, "cashier"))
        assert client.get("/api/operators/", headers=other).status_code == 200

        db.session.remove()
        db.drop_all()


def test_failed_authentication_is_throttled_by_address():
    app = create_app({**TEST_CONFIG, "RATE_LIMIT_REQUESTS": 2})
    with app.app_context():
        client = app.test_client()
        bad = auth_headers("not-a-real-token")

        statuses = [client.get("/api/operators/", headers=bad).status_code for _ in range(2)]
        statuses.append(client.get("/api/operators/").status_code)
        assert statuses == [401, 401, 429]

        # A valid token is counted under its user, not the exhausted address
        assert app.extensions["rate_limiter"].hit("ip:127.0.0.1").allowed is False
        db.create_all()
        good = auth_headers(issue_token(9, "cashier"))
        assert client.get("/api/operators/", headers=good).status_code == 200

        db.session.remove()
        db.drop_all()
