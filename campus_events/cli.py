"""
Command-line shell for the campus events client.

Each command drives one view, prints its state, and exits non-zero when the
view surfaced a failure.

Common use cases:
    # Sign in (the session is kept in SESSION_FILE)
    campus-events login alice@uni.edu

    # Browse upcoming events tagged "music", second page
    campus-events events list --upcoming --tags music --page 2

    # Register for / cancel an event
    campus-events register 64f1c0ffee
    campus-events cancel 64f1c0ffee

    # Registration history, cancelled only
    campus-events registrations --filter cancelled

    # Create an event (organizers/admins)
    campus-events events create --title "Jazz Night" --description "Live jazz" \\
        --start 2026-11-02T19:00 --end 2026-11-02T22:00 --capacity 80 --tags "music, evening"
"""

import argparse
import asyncio
import getpass
import mimetypes
import os
import sys
from typing import Optional

from campus_events.core.errors import ClientError, FormValidationError, PermissionDenied
from campus_events.core.metrics import metrics_snapshot
from campus_events.core.timeutils import Timing
from campus_events.main import ClientApp, lifespan
from campus_events.schemas.event import EventResponse, ImageUpload
from campus_events.schemas.user import Role, UserCreate
from campus_events.views import (
    CreateEventView,
    EditEventView,
    EventDetailView,
    EventsListView,
    HistoryFilter,
    MyRegistrationsView,
    ProfileView,
)
from campus_events.views.base import View
from campus_events.views.event_form import EventFormView

TIMING_LABELS = {
    Timing.PAST: "Past Event",
    Timing.UPCOMING: "Upcoming",
    Timing.LIVE: "Live Now",
}


def _format_date(value) -> str:
    return value.astimezone().strftime("%a, %b %d, %Y %H:%M") if value else "-"


def print_event_line(event: EventResponse, registered: bool = False) -> None:
    marker = " [registered]" if registered else ""
    tags = ", ".join(event.tags[:3])
    if len(event.tags) > 3:
        tags += f" +{len(event.tags) - 3} more"
    print(f"{event.id}  {_format_date(event.start_at)}  {event.title}{marker}")
    print(f"    {TIMING_LABELS[event.timing()]}"
          f"{'  @ ' + event.location if event.location else ''}"
          f"{'  tags: ' + tags if tags else ''}")


def print_event_details(view: EventDetailView) -> None:
    event = view.event
    print(f"{event.title}  ({TIMING_LABELS[event.timing()]})"
          f"{'  [registered]' if view.is_registered else ''}")
    print(event.description)
    print(f"Start:     {_format_date(event.start_at)}")
    if event.end_at:
        print(f"End:       {_format_date(event.end_at)}")
    if event.location:
        print(f"Location:  {event.location}")
    if event.capacity:
        print(f"Capacity:  {event.capacity} people")
    print(f"Views:     {event.views}")
    if event.organizer:
        print(f"Organizer: {event.organizer.name or 'Unknown Organizer'} {event.organizer.email or ''}".rstrip())
    if event.tags:
        print(f"Tags:      {', '.join(event.tags)}")
    if view.image_url:
        print(f"Image:     {view.image_url}")


def flush_notices(view: View) -> None:
    for notice in view.drain_notices():
        print(notice)


def _check(view: View) -> None:
    if view.error:
        raise ClientError(view.error)


def _read_image(path: Optional[str]) -> Optional[ImageUpload]:
    if not path:
        return None
    with open(path, "rb") as f:
        content = f.read()
    content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return ImageUpload(filename=os.path.basename(path), content=content, content_type=content_type)


def _apply_form_args(view: EventFormView, args: argparse.Namespace) -> None:
    values = {
        "title": args.title,
        "description": args.description,
        "location": args.location,
        "capacity": args.capacity,
        "startAt": args.start,
        "endAt": args.end,
        "tags": args.tags,
    }
    for name, value in values.items():
        if value is not None:
            view.set_field(name, value)
    if args.unpublished:
        view.set_field("isPublished", False)
    view.set_image(_read_image(args.image))


async def _submit(view: EventFormView) -> EventResponse:
    event = await view.submit()
    flush_notices(view)
    if view.errors:
        raise FormValidationError(view.errors)
    if event is None:
        raise ClientError("Event was not saved")
    return event


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

async def cmd_login(app: ClientApp, args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("Password: ")
    user = await app.auth.login(args.email, password)
    app.registrations.clear()
    print(f"Logged in as {user.name} ({user.role.value})")


async def cmd_signup(app: ClientApp, args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("Password: ")
    user = await app.auth.register(
        UserCreate(name=args.name, email=args.email, password=password, role=Role(args.role))
    )
    app.registrations.clear()
    print(f"Account created for {user.name} ({user.role.value})")


async def cmd_logout(app: ClientApp, args: argparse.Namespace) -> None:
    app.logout()
    print("Logged out")


async def cmd_profile(app: ClientApp, args: argparse.Namespace) -> None:
    view = ProfileView(app)
    await view.load()
    _check(view)
    profile = view.profile
    print(f"{profile.name} <{profile.email}>")
    print(f"Role: {profile.role.value.capitalize()}")
    if profile.created_at:
        print(f"Member since {profile.created_at.strftime('%B %Y')}")


async def cmd_events_list(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventsListView(app)
    view.filters = view.filters.model_copy(update={
        "search": args.search or "",
        "upcoming": args.upcoming,
        "tags": args.tags or "",
        "organizer": args.organizer or "",
    })
    view.page = max(args.page, 1)
    await view.load()
    _check(view)
    if not view.events:
        print("No events found")
        return
    registered = view.registered
    for event in view.events:
        print_event_line(event, registered.get(event.id, False))
    print(f"Page {view.page} of {view.total_pages} ({view.total_items} events)")


async def cmd_events_show(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventDetailView(app, args.event_id)
    await view.load()
    _check(view)
    print_event_details(view)


async def cmd_events_create(app: ClientApp, args: argparse.Namespace) -> None:
    view = CreateEventView(app)
    _apply_form_args(view, args)
    event = await _submit(view)
    print(f"Created event {event.id}")


async def cmd_events_edit(app: ClientApp, args: argparse.Namespace) -> None:
    view = EditEventView(app, args.event_id)
    await view.load()
    if view.denied:
        raise PermissionDenied("You are not authorized to edit this event")
    _check(view)
    _apply_form_args(view, args)
    event = await _submit(view)
    print(f"Updated event {event.id}")


async def cmd_events_delete(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventDetailView(app, args.event_id)
    await view.load()
    _check(view)
    if not view.can_edit:
        raise PermissionDenied("You are not authorized to delete this event")
    if not args.yes:
        answer = input("Are you sure you want to delete this event? This action cannot be undone. [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted")
            return
    deleted = await view.delete()
    flush_notices(view)
    if not deleted:
        raise ClientError("Event was not deleted")


async def cmd_events_attendees(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventDetailView(app, args.event_id)
    await view.load()
    _check(view)
    loaded = await view.load_attendees()
    flush_notices(view)
    if not loaded:
        raise ClientError("Attendees unavailable")
    if not view.attendees:
        print("No registrations yet")
    for attendee in view.attendees:
        who = attendee.user.name or attendee.user.email if attendee.user else attendee.id
        print(f"{who}  {attendee.status.value}")


async def cmd_register(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventDetailView(app, args.event_id)
    ok = await view.register()
    flush_notices(view)
    if not ok:
        raise ClientError("Registration failed")


async def cmd_cancel(app: ClientApp, args: argparse.Namespace) -> None:
    view = EventDetailView(app, args.event_id)
    ok = await view.cancel()
    flush_notices(view)
    if not ok:
        raise ClientError("Cancellation failed")


async def cmd_registrations(app: ClientApp, args: argparse.Namespace) -> None:
    view = MyRegistrationsView(app)
    view.set_filter(HistoryFilter(args.filter))
    await view.load()
    _check(view)
    if not view.visible:
        print("No registrations found" if view.filter == HistoryFilter.ALL else f"No {view.filter.value} events")
        return
    for registration in view.visible:
        event = registration.event
        cancellable = "  (cancellable)" if view.can_cancel(registration) else ""
        print(f"{event.id}  {_format_date(event.start_at)}  {event.title}"
              f"  [{registration.status.value.capitalize()}]{cancellable}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campus-events",
        description="Browse campus events and manage your registrations",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--metrics", action="store_true", help="Print client metrics to stderr on exit")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    login_parser = subparsers.add_parser("login", help="Sign in")
    login_parser.add_argument("email")
    login_parser.add_argument("--password", help="Prompted for when omitted")
    login_parser.set_defaults(handler=cmd_login)

    signup_parser = subparsers.add_parser("signup", help="Create an account")
    signup_parser.add_argument("--name", required=True)
    signup_parser.add_argument("--email", required=True)
    signup_parser.add_argument("--password", help="Prompted for when omitted")
    signup_parser.add_argument("--role", choices=[r.value for r in Role], default=Role.STUDENT.value)
    signup_parser.set_defaults(handler=cmd_signup)

    subparsers.add_parser("logout", help="Forget the stored session").set_defaults(handler=cmd_logout)
    subparsers.add_parser("profile", help="Show your profile").set_defaults(handler=cmd_profile)

    events_parser = subparsers.add_parser("events", help="Browse and manage events")
    events_sub = events_parser.add_subparsers(dest="events_command")

    list_parser = events_sub.add_parser("list", help="List events")
    list_parser.add_argument("--search", help="Free-text search")
    list_parser.add_argument("--upcoming", action="store_true", help="Upcoming events only")
    list_parser.add_argument("--tags", help="Tag filter")
    list_parser.add_argument("--organizer", help="Organizer filter")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.set_defaults(handler=cmd_events_list)

    show_parser = events_sub.add_parser("show", help="Show one event")
    show_parser.add_argument("event_id")
    show_parser.set_defaults(handler=cmd_events_show)

    for name, handler, help_text in (
        ("create", cmd_events_create, "Create an event"),
        ("edit", cmd_events_edit, "Edit an event you organize"),
    ):
        form_parser = events_sub.add_parser(name, help=help_text)
        if name == "edit":
            form_parser.add_argument("event_id")
        form_parser.add_argument("--title")
        form_parser.add_argument("--description")
        form_parser.add_argument("--location")
        form_parser.add_argument("--capacity")
        form_parser.add_argument("--start", help="Local time, YYYY-MM-DDTHH:MM")
        form_parser.add_argument("--end", help="Local time, YYYY-MM-DDTHH:MM")
        form_parser.add_argument("--tags", help="Comma separated")
        form_parser.add_argument("--unpublished", action="store_true")
        form_parser.add_argument("--image", help="Path to an image file")
        form_parser.set_defaults(handler=handler)

    delete_parser = events_sub.add_parser("delete", help="Delete an event you organize")
    delete_parser.add_argument("event_id")
    delete_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    delete_parser.set_defaults(handler=cmd_events_delete)

    attendees_parser = events_sub.add_parser("attendees", help="List an event's registrations")
    attendees_parser.add_argument("event_id")
    attendees_parser.set_defaults(handler=cmd_events_attendees)

    register_parser = subparsers.add_parser("register", help="Register for an event")
    register_parser.add_argument("event_id")
    register_parser.set_defaults(handler=cmd_register)

    cancel_parser = subparsers.add_parser("cancel", help="Cancel a registration")
    cancel_parser.add_argument("event_id")
    cancel_parser.set_defaults(handler=cmd_cancel)

    history_parser = subparsers.add_parser("registrations", help="Your registration history")
    history_parser.add_argument("--filter", choices=[f.value for f in HistoryFilter], default="all")
    history_parser.set_defaults(handler=cmd_registrations)

    return parser


async def run(args: argparse.Namespace) -> int:
    async with lifespan() as app:
        try:
            await args.handler(app, args)
        except FormValidationError as e:
            for field, message in e.errors.items():
                print(f"{field}: {message}", file=sys.stderr)
            return 2
        except ClientError as e:
            print(e.message, file=sys.stderr)
            return 1
        finally:
            if args.metrics:
                sys.stderr.write(metrics_snapshot().decode("utf-8"))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 1
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
