import typing as t

import pytest

from accounts.models import FestUser

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "role,participant,organizer,admin",
    [
        (FestUser.Role.IIIT_PARTICIPANT, True, False, False),
        (FestUser.Role.NON_IIIT_PARTICIPANT, True, False, False),
        (FestUser.Role.ORGANIZER, False, True, False),
        (FestUser.Role.ADMIN, False, False, True),
    ],
)
def test_role_flags(
    fest_user_factory: t.Callable[..., FestUser], role: str, participant: bool, organizer: bool, admin: bool
) -> None:
    user = fest_user_factory(role=role)

    assert user.is_participant is participant
    assert user.is_organizer is organizer
    assert user.is_fest_admin is admin


def test_superusers_are_admins() -> None:
    user = FestUser.objects.create_superuser(username="root", email="root@fest.test", password="pass")

    assert user.is_fest_admin is True


def test_display_name_prefers_club_name(organizer: FestUser) -> None:
    assert organizer.display_name == "Robotics Club"


def test_display_name_falls_back_to_username() -> None:
    user = FestUser.objects.create_user(username="jane_doe@fest.test", password="pass")

    assert user.display_name == "Jane Doe"


def test_queryset_filters(participant: FestUser, iiit_participant: FestUser, organizer: FestUser) -> None:
    assert set(FestUser.objects.participants()) == {participant, iiit_participant}
    assert list(FestUser.objects.organizers()) == [organizer]
