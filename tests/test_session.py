"""Session manager: sign-in, restore and sign-out through the cache."""

from budgetsync.core.reference_data import INITIAL_USERS
from budgetsync.sync.session import SessionManager


def test_login_checks_password_when_user_has_one(cache):
    sessions = SessionManager(cache, INITIAL_USERS)

    assert sessions.login("u-admin", "wrong") is None
    assert sessions.login("u-admin", "admin").id == "u-admin"
    assert sessions.current_user.id == "u-admin"


def test_login_unknown_user(cache):
    assert SessionManager(cache, INITIAL_USERS).login("ghost") is None


def test_remember_persists_and_restores(cache):
    SessionManager(cache, INITIAL_USERS).login("u-tm", remember=True)

    restored = SessionManager(cache, INITIAL_USERS).restore()

    assert restored.id == "u-tm"


def test_without_remember_nothing_is_stored(cache):
    SessionManager(cache, INITIAL_USERS).login("u-tm")

    assert SessionManager(cache, INITIAL_USERS).restore() is None


def test_logout_clears_remembered_session(cache):
    sessions = SessionManager(cache, INITIAL_USERS)
    sessions.login("u-finance", remember=True)

    sessions.logout()

    assert sessions.current_user is None
    assert cache.load_session_user() is None


def test_restore_drops_session_for_removed_user(cache):
    SessionManager(cache, INITIAL_USERS).login("u-tm", remember=True)
    others = [u for u in INITIAL_USERS if u.id != "u-tm"]

    assert SessionManager(cache, others).restore() is None
    assert cache.read_blob(cache.session_key) is None


def test_corrupt_session_blob_means_no_session(cache):
    cache.write_blob(cache.session_key, "not-json")

    assert SessionManager(cache, INITIAL_USERS).restore() is None
