"""
Tests for the command-line shell, driven against the fake backend.
"""

import pytest

from campus_events.cli import build_parser
from campus_events.core.errors import ClientError, FormValidationError, PermissionDenied
from campus_events.core.metrics import metrics_snapshot
from campus_events.main import ClientApp


async def _run(app: ClientApp, *argv: str) -> None:
    args = build_parser().parse_args(list(argv))
    await args.handler(app, args)


@pytest.mark.asyncio
async def test_login_and_list(app: ClientApp, student, upcoming_event, backend, capsys):
    """Login then list shows the registration marker."""
    backend.add_registration(student, upcoming_event)
    await _run(app, "login", "sam@uni.edu", "--password", "student123")
    await _run(app, "events", "list", "--upcoming")

    out = capsys.readouterr().out
    assert "Logged in as Sam Student (student)" in out
    assert "Jazz Night" in out
    assert "Page 1 of 1 (1 events)" in out
    assert backend.last_query("/api/events")["upcoming"] == "true"


@pytest.mark.asyncio
async def test_register_and_history(app: ClientApp, logged_in_student, upcoming_event, capsys):
    """Register prints the success notice and shows in history."""
    await _run(app, "register", upcoming_event["_id"])
    await _run(app, "registrations", "--filter", "upcoming")

    out = capsys.readouterr().out
    assert "Successfully registered for the event!" in out
    assert "Jazz Night" in out
    assert "[Registered]  (cancellable)" in out


@pytest.mark.asyncio
async def test_register_requires_login(app: ClientApp, upcoming_event, capsys):
    """Logged-out register fails with the login prompt."""
    with pytest.raises(ClientError):
        await _run(app, "register", upcoming_event["_id"])
    assert "Please login to register for events" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_create_with_invalid_fields(app: ClientApp, logged_in_organizer):
    """Form errors are raised per field."""
    with pytest.raises(FormValidationError) as exc_info:
        await _run(app, "events", "create", "--title", "Quiz", "--capacity", "0")
    assert exc_info.value.errors["capacity"] == "Capacity must be a positive number"
    assert exc_info.value.errors["startAt"] == "Start date is required"


@pytest.mark.asyncio
async def test_edit_someone_elses_event(app: ClientApp, backend, upcoming_event):
    """Editing a foreign event is refused before any write."""
    backend.create_user("Rival", "rival@uni.edu", "rival123", role="organizer")
    await app.auth.login("rival@uni.edu", "rival123")

    with pytest.raises(PermissionDenied):
        await _run(app, "events", "edit", upcoming_event["_id"], "--title", "Mine now")
    assert backend.count("PUT", f"/api/events/{upcoming_event['_id']}") == 0


@pytest.mark.asyncio
async def test_attendees(app: ClientApp, backend, student, logged_in_organizer, upcoming_event, capsys):
    """Organizers can list who registered."""
    backend.add_registration(student, upcoming_event)
    await _run(app, "events", "attendees", upcoming_event["_id"])
    assert "Sam Student  registered" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_delete_with_confirmation_declined(app: ClientApp, backend, logged_in_organizer, upcoming_event, monkeypatch, capsys):
    """Answering no keeps the event."""
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    await _run(app, "events", "delete", upcoming_event["_id"])
    assert "Aborted" in capsys.readouterr().out
    assert upcoming_event["_id"] in backend.events


def test_parser_rejects_unknown_filter():
    """History filter is limited to the known values."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["registrations", "--filter", "someday"])


@pytest.mark.asyncio
async def test_metrics_record_api_calls(app: ClientApp, upcoming_event):
    """API calls show up in the Prometheus snapshot."""
    await _run(app, "events", "show", upcoming_event["_id"])

    snapshot = metrics_snapshot().decode("utf-8")
    assert 'campus_api_requests_total{operation="get_event",outcome="success"}' in snapshot
    assert build_parser().parse_args(["--metrics", "logout"]).metrics


@pytest.mark.asyncio
async def test_delete_someone_elses_event(app: ClientApp, backend, logged_in_student, upcoming_event, monkeypatch):
    """Delete is refused before the confirmation prompt or any request."""
    monkeypatch.setattr("builtins.input", lambda prompt: pytest.fail("prompted"))
    with pytest.raises(PermissionDenied):
        await _run(app, "events", "delete", upcoming_event["_id"], "--yes")
    assert backend.count("DELETE", f"/api/events/{upcoming_event['_id']}") == 0
