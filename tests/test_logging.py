"""
Tests for the logging processors.
"""

from campus_events.core.logging import MASK, redact_secrets


def test_credentials_are_masked():
    """Token, password and auth header values never reach the renderer."""
    event = redact_secrets(None, "info", {
        "event": "session_saved",
        "token": "abc.def.ghi",
        "Password": "hunter22",
        "headers": {"Authorization": "Bearer abc", "Accept": "application/json"},
        "email": "sam@uni.edu",
    })

    assert event["token"] == MASK
    assert event["Password"] == MASK
    assert event["headers"] == {"Authorization": MASK, "Accept": "application/json"}
    assert event["email"] == "sam@uni.edu"
    assert event["event"] == "session_saved"


def test_missing_credentials_left_alone():
    """A None token is not replaced with the mask."""
    assert redact_secrets(None, "debug", {"event": "logout", "token": None})["token"] is None
