"""Local cache: blob persistence, corruption handling, session user."""

import pytest

from budgetsync.core.errors import CorruptLocalCacheError
from budgetsync.models.reference_models import User, UserRole
from tests.conftest import make_request


def test_missing_key_is_a_miss(cache):
    assert cache.load_requests() is None
    assert cache.load_session_user() is None


def test_requests_round_trip_preserves_order(cache):
    requests = [make_request("b"), make_request("a", approved_amount=5.0)]

    cache.save_requests(requests)

    assert cache.load_requests() == requests


def test_blob_uses_camel_case_application_shape(cache):
    cache.save_requests([make_request("a")])

    blob = cache.read_blob(cache.requests_key)
    assert '"rtmId": "u-rtm-north"' in blob
    assert "approvedAmount" not in blob


def test_overwrite_replaces_blob(cache):
    cache.save_requests([make_request("a")])
    cache.save_requests([])

    assert cache.load_requests() == []


@pytest.mark.parametrize("blob", ["{oops", '{"id": 1}', '[{"id": "x"}]'])
def test_corrupt_blob_raises_on_parse_and_misses_on_load(cache, blob):
    cache.write_blob(cache.requests_key, blob)

    with pytest.raises(CorruptLocalCacheError):
        cache.parse_requests()
    assert cache.load_requests() is None


def test_clear_requests(cache):
    cache.save_requests([make_request("a")])

    cache.clear_requests()

    assert cache.read_blob(cache.requests_key) is None


def test_session_user_is_stored_without_password(cache):
    admin = User(id="u-admin", name="Admin", role=UserRole.ADMIN, password="secret")

    cache.save_session_user(admin)

    assert "secret" not in cache.read_blob(cache.session_key)
    restored = cache.load_session_user()
    assert restored.id == "u-admin"
    assert restored.password is None


def test_invalid_session_blob_is_ignored(cache):
    cache.write_blob(cache.session_key, '{"id": "u-1"}')

    assert cache.load_session_user() is None
