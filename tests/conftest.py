"""
Pytest fixtures: an in-process fake backend, a client wired to it, and users.

The backend is a small FastAPI app that speaks the same REST contract as the
real API (envelopes, `_id` keys, `message` on errors). The client reaches it
through httpx.ASGITransport, so every test runs the real client code end to
end without a network.
"""

import asyncio
import math
import uuid
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from campus_events.core.config import Settings
from campus_events.main import ClientApp


def _id() -> str:
    return uuid.uuid4().hex[:24]


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z") if dt else None


def _error(status_code: int, message: Optional[str]) -> JSONResponse:
    body = {"success": False}
    if message is not None:
        body["message"] = message
    return JSONResponse(body, status_code=status_code)


class FakeBackend:
    """In-memory stand-in for the campus events API."""

    def __init__(self):
        self.users: dict[str, dict] = {}
        self.passwords: dict[str, str] = {}
        self.tokens: dict[str, str] = {}
        self.events: dict[str, dict] = {}
        self.registrations: list[dict] = []
        self.calls: list[tuple[str, str, dict]] = []
        self.last_form: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], tuple[int, Optional[str]]] = {}
        self._holds: dict[tuple[str, str], asyncio.Event] = {}
        self.app = self._build_app()

    # -- seeding -------------------------------------------------------

    def create_user(self, name: str, email: str, password: str = "secret123", role: str = "student") -> dict:
        user = {
            "_id": _id(),
            "name": name,
            "email": email,
            "role": role,
            "createdAt": _iso(datetime.now(timezone.utc)),
        }
        self.users[user["_id"]] = user
        self.passwords[email] = password
        return user

    def add_event(
        self,
        title: str,
        start_at: datetime,
        organizer: dict,
        **fields,
    ) -> dict:
        event = {
            "_id": _id(),
            "title": title,
            "description": fields.get("description", f"About {title}"),
            "image": fields.get("image"),
            "location": fields.get("location"),
            "capacity": fields.get("capacity"),
            "startAt": _iso(start_at),
            "endAt": _iso(fields.get("end_at")),
            "tags": fields.get("tags", []),
            "organizer": organizer["_id"],
            "isPublished": fields.get("is_published", True),
            "meta": {"views": 0},
            "createdAt": _iso(datetime.now(timezone.utc)),
        }
        self.events[event["_id"]] = event
        return event

    def add_registration(self, user: dict, event: dict, status: str = "registered") -> dict:
        registration = {
            "_id": _id(),
            "user": user["_id"],
            "event": event["_id"],
            "status": status,
            "createdAt": _iso(datetime.now(timezone.utc)),
        }
        self.registrations.append(registration)
        return registration

    # -- test controls -------------------------------------------------

    def fail_next(self, method: str, path: str, status_code: int = 500, message: Optional[str] = None):
        """Make the next matching request fail with the given status/message."""
        self._failures[(method, path)] = (status_code, message)

    def hold(self, method: str, path: str) -> asyncio.Event:
        """Block the next matching request until the returned event is set."""
        gate = asyncio.Event()
        self._holds[(method, path)] = gate
        return gate

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == path)

    def last_query(self, path: str) -> dict:
        return [q for m, p, q in self.calls if m == "GET" and p == path][-1]

    # -- serialization -------------------------------------------------

    def _populated_event(self, event: dict) -> dict:
        organizer = self.users.get(event["organizer"])
        body = dict(event)
        body["organizer"] = (
            {"_id": organizer["_id"], "name": organizer["name"], "email": organizer["email"]}
            if organizer else event["organizer"]
        )
        return body

    def _populated_registration(self, registration: dict) -> dict:
        body = dict(registration)
        event = self.events.get(registration["event"])
        body["event"] = self._populated_event(event) if event else None
        return body

    # -- app -----------------------------------------------------------

    def _current_user(self, request: Request) -> Optional[dict]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        user_id = self.tokens.get(header[len("Bearer "):])
        return self.users.get(user_id) if user_id else None

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        backend = self

        @app.middleware("http")
        async def record_and_inject(request: Request, call_next):
            key = (request.method, request.url.path)
            backend.calls.append((request.method, request.url.path, dict(request.query_params)))
            gate = backend._holds.pop(key, None)
            if gate is not None:
                await gate.wait()
            failure = backend._failures.pop(key, None)
            if failure is not None:
                return _error(*failure)
            return await call_next(request)

        @app.post("/api/auth/register")
        async def register(request: Request):
            body = await request.json()
            if body["email"] in backend.passwords:
                return _error(400, "User already exists")
            user = backend.create_user(body["name"], body["email"], body["password"], body.get("role", "student"))
            token = _id()
            backend.tokens[token] = user["_id"]
            return JSONResponse({"success": True, "data": {"token": token, "user": user}}, status_code=201)

        @app.post("/api/auth/login")
        async def login(request: Request):
            body = await request.json()
            if backend.passwords.get(body["email"]) != body["password"]:
                return _error(401, "Invalid credentials")
            user = next(u for u in backend.users.values() if u["email"] == body["email"])
            token = _id()
            backend.tokens[token] = user["_id"]
            return {"success": True, "data": {"token": token, "user": user}}

        @app.get("/api/auth/me")
        async def me(request: Request):
            user = backend._current_user(request)
            if user is None:
                return _error(401, "Not authorized")
            return {"success": True, "data": user}

        @app.get("/api/events")
        async def list_events(request: Request):
            params = request.query_params
            page = int(params.get("page", 1))
            size = int(params.get("size", 12))
            items = sorted(backend.events.values(), key=lambda e: e["startAt"])
            if params.get("q"):
                needle = params["q"].lower()
                items = [e for e in items if needle in e["title"].lower() or needle in e["description"].lower()]
            if params.get("upcoming") == "true":
                now = _iso(datetime.now(timezone.utc))
                items = [e for e in items if e["startAt"] > now]
            if params.get("tags"):
                wanted = {t.strip() for t in params["tags"].split(",")}
                items = [e for e in items if wanted & set(e["tags"])]
            if params.get("organizer"):
                items = [e for e in items if e["organizer"] == params["organizer"]]
            total = len(items)
            window = items[(page - 1) * size: page * size]
            return {
                "success": True,
                "data": [backend._populated_event(e) for e in window],
                "totalPages": math.ceil(total / size),
                "totalItems": total,
            }

        @app.get("/api/events/{event_id}")
        async def get_event(event_id: str):
            event = backend.events.get(event_id)
            if event is None:
                return _error(404, "Event not found")
            event["meta"]["views"] += 1
            return {"success": True, "data": backend._populated_event(event)}

        async def _apply_form(request: Request, event: dict) -> None:
            form = await request.form()
            backend.last_form = [
                (key, value.filename if hasattr(value, "filename") else value)
                for key, value in form.multi_items()
            ]
            for key in ("title", "description", "location", "startAt", "endAt"):
                if key in form:
                    event[key] = form[key]
            if "capacity" in form:
                event["capacity"] = int(form["capacity"])
            if "isPublished" in form:
                event["isPublished"] = form["isPublished"] == "true"
            event["tags"] = form.getlist("tags")
            if "image" in form:
                event["image"] = f"uploads/{form['image'].filename}"

        @app.post("/api/events")
        async def create_event(request: Request):
            user = backend._current_user(request)
            if user is None:
                return _error(401, "Not authorized")
            if user["role"] not in ("organizer", "admin"):
                return _error(403, "Only organizers can create events")
            event = {
                "_id": _id(), "organizer": user["_id"], "meta": {"views": 0},
                "description": "", "image": None, "location": None, "capacity": None,
                "endAt": None, "tags": [], "isPublished": True,
                "createdAt": _iso(datetime.now(timezone.utc)),
            }
            await _apply_form(request, event)
            backend.events[event["_id"]] = event
            return JSONResponse({"success": True, "data": backend._populated_event(event)}, status_code=201)

        @app.put("/api/events/{event_id}")
        async def update_event(event_id: str, request: Request):
            user = backend._current_user(request)
            event = backend.events.get(event_id)
            if event is None:
                return _error(404, "Event not found")
            if user is None or (user["role"] != "admin" and event["organizer"] != user["_id"]):
                return _error(403, "Not authorized to update this event")
            await _apply_form(request, event)
            return {"success": True, "data": backend._populated_event(event)}

        @app.delete("/api/events/{event_id}")
        async def delete_event(event_id: str, request: Request):
            user = backend._current_user(request)
            event = backend.events.get(event_id)
            if event is None:
                return _error(404, "Event not found")
            if user is None or (user["role"] != "admin" and event["organizer"] != user["_id"]):
                return _error(403, "Not authorized to delete this event")
            del backend.events[event_id]
            return {"success": True, "message": "Event deleted"}

        @app.get("/api/events/{event_id}/registrations")
        async def event_registrations(event_id: str, request: Request):
            user = backend._current_user(request)
            if user is None or user["role"] == "student":
                return _error(403, "Not authorized")
            rows = []
            for r in backend.registrations:
                if r["event"] == event_id:
                    attendee = backend.users[r["user"]]
                    rows.append({
                        "_id": r["_id"], "status": r["status"], "createdAt": r["createdAt"],
                        "user": {"_id": attendee["_id"], "name": attendee["name"], "email": attendee["email"]},
                    })
            return {"success": True, "data": rows}

        @app.post("/api/registrations/{event_id}")
        async def register_for_event(event_id: str, request: Request):
            user = backend._current_user(request)
            if user is None:
                return _error(401, "Not authorized")
            event = backend.events.get(event_id)
            if event is None:
                return _error(404, "Event not found")
            for r in backend.registrations:
                if r["user"] == user["_id"] and r["event"] == event_id and r["status"] == "registered":
                    return _error(400, "Already registered for this event")
            registration = backend.add_registration(user, event)
            return JSONResponse(
                {"success": True, "data": backend._populated_registration(registration)},
                status_code=201,
            )

        @app.delete("/api/registrations/{event_id}")
        async def cancel_registration(event_id: str, request: Request):
            user = backend._current_user(request)
            if user is None:
                return _error(401, "Not authorized")
            for r in backend.registrations:
                if r["user"] == user["_id"] and r["event"] == event_id and r["status"] == "registered":
                    r["status"] = "cancelled"
                    return {"success": True, "message": "Registration cancelled"}
            return _error(404, "Registration not found")

        @app.get("/api/registrations")
        async def my_registrations(request: Request):
            user = backend._current_user(request)
            if user is None:
                return _error(401, "Not authorized")
            rows = [
                backend._populated_registration(r)
                for r in reversed(backend.registrations)
                if r["user"] == user["_id"]
            ]
            return {"success": True, "data": rows}

        return app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        API_BASE_URL="http://test/api",
        ASSET_BASE_URL="http://test",
        SESSION_FILE=str(tmp_path / "session.json"),
        EVENTS_PAGE_SIZE=12,
        REGISTRATION_RESYNC_SECONDS=60.0,
    )


@pytest_asyncio.fixture
async def app(backend: FakeBackend, settings: Settings) -> AsyncGenerator[ClientApp, None]:
    """Client wired to the fake backend through ASGITransport."""
    transport = httpx.ASGITransport(app=backend.app)
    async with ClientApp(settings, transport=transport) as client_app:
        yield client_app


@pytest.fixture
def organizer(backend: FakeBackend) -> dict:
    return backend.create_user("Olivia Organizer", "olivia@uni.edu", "organizer123", role="organizer")


@pytest.fixture
def student(backend: FakeBackend) -> dict:
    return backend.create_user("Sam Student", "sam@uni.edu", "student123")


@pytest_asyncio.fixture
async def logged_in_student(app: ClientApp, student: dict) -> dict:
    await app.auth.login("sam@uni.edu", "student123")
    return student


@pytest_asyncio.fixture
async def logged_in_organizer(app: ClientApp, organizer: dict) -> dict:
    await app.auth.login("olivia@uni.edu", "organizer123")
    return organizer


@pytest.fixture
def upcoming_event(backend: FakeBackend, organizer: dict) -> dict:
    return backend.add_event(
        "Jazz Night",
        datetime.now(timezone.utc) + timedelta(days=7),
        organizer,
        location="Main Hall",
        capacity=80,
        tags=["music", "evening"],
    )


@pytest.fixture
def past_event(backend: FakeBackend, organizer: dict) -> dict:
    return backend.add_event(
        "Orientation",
        datetime.now(timezone.utc) - timedelta(days=30),
        organizer,
        tags=["welcome"],
    )
