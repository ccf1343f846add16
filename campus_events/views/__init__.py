"""
View controllers: the state each screen of the client shows.
"""

from .event_detail import EventDetailView
from .event_form import CreateEventView, EditEventView
from .events_list import EventsListView
from .my_registrations import HistoryFilter, MyRegistrationsView
from .profile import ProfileView

__all__ = [
    'EventsListView', 'EventDetailView', 'CreateEventView', 'EditEventView',
    'MyRegistrationsView', 'HistoryFilter', 'ProfileView',
]
