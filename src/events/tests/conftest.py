import typing as t
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken

from accounts.models import FestUser
from events.models import Event, MerchItem, MerchVariant, Registration, Ticket
from events.service import ticket_service

FORM_SCHEMA: list[dict[str, t.Any]] = [
    {"id": "college", "type": "text", "label": "College", "required": True, "order": 1},
    {"id": "track", "type": "dropdown", "label": "Track", "required": True, "order": 2, "options": ["AI", "Web"]},
    {"id": "tools", "type": "checkbox", "label": "Tools", "order": 3, "options": ["git", "docker", "k8s"]},
]

VALID_RESPONSES = {"college": "IIIT Hyderabad", "track": "AI", "tools": ["git"]}


@pytest.fixture
def event_factory(organizer: FestUser, next_week: datetime) -> t.Callable[..., Event]:
    def _create(**kwargs: t.Any) -> Event:
        defaults: dict[str, t.Any] = {
            "organizer": organizer,
            "name": "Hackathon",
            "description": "24 hour build sprint",
            "status": Event.EventStatus.PUBLISHED,
            "registration_deadline": next_week - timedelta(days=1),
            "start_date": next_week,
            "end_date": next_week + timedelta(days=1),
            "registration_limit": 10,
        }
        defaults.update(kwargs)
        return Event.objects.create(**defaults)

    return _create


@pytest.fixture
def draft_event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(status=Event.EventStatus.DRAFT)


@pytest.fixture
def published_event(event_factory: t.Callable[..., Event]) -> Event:
    """A published NORMAL event with a custom form."""
    return event_factory(custom_form_schema=FORM_SCHEMA)


@pytest.fixture
def merch_event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(
        name="Fest Merch",
        event_type=Event.EventType.MERCHANDISE,
        registration_limit=100,
        registration_fee=Decimal("299.00"),
    )


@pytest.fixture
def hoodie(merch_event: Event) -> MerchItem:
    return MerchItem.objects.create(
        event=merch_event, item_id="hoodie", name="Hoodie", purchase_limit_per_participant=2
    )


@pytest.fixture
def hoodie_variant(hoodie: MerchItem) -> MerchVariant:
    return MerchVariant.objects.create(
        item=hoodie,
        variant_id="m-black",
        label="M / Black",
        size="M",
        color="Black",
        price=Decimal("499.00"),
        stock_qty=5,
    )


@pytest.fixture
def registration(published_event: Event, participant: FestUser) -> Registration:
    return Registration.objects.create(participant=participant, event=published_event, responses=VALID_RESPONSES)


@pytest.fixture
def ticket(registration: Registration) -> Ticket:
    return ticket_service.issue_ticket(registration)


def client_for(user: FestUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def participant_client(participant: FestUser) -> Client:
    """API client for a non-IIIT participant."""
    return client_for(participant)


@pytest.fixture
def organizer_client(organizer: FestUser) -> Client:
    """API client for the organizer owning the event fixtures."""
    return client_for(organizer)


@pytest.fixture
def other_organizer_client(other_organizer: FestUser) -> Client:
    return client_for(other_organizer)


@pytest.fixture
def admin_client_jwt(admin_user: FestUser) -> Client:
    """API client for a fest admin."""
    return client_for(admin_user)
