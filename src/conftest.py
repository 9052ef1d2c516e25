"""Project-wide fixtures: users per role, time helpers and test-mode settings."""

import secrets
import string
import typing as t
from datetime import datetime, time, timedelta
from pathlib import Path

import faker
import pytest
from django.utils import timezone
from pytest import MonkeyPatch

from accounts.models import FestUser


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Increase the rate limits so that tests never get throttled."""
    for throttle in ("AnonDefaultThrottle", "UserDefaultThrottle", "WriteThrottle", "ScanThrottle"):
        monkeypatch.setattr(f"common.throttling.{throttle}.rate", "10000/min")


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def isolated_media_root(settings: t.Any, tmp_path: Path) -> Path:
    """Uploaded blobs go to a per-test directory."""
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return tmp_path / "media"


@pytest.fixture(autouse=True)
def locmem_email(settings: t.Any) -> None:
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


class FestUserFactory:
    """Factory for creating FestUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> FestUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(10)))
        email = kwargs.pop("email", f"{username}@fest.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return FestUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> FestUser:
        return self.create_user(**kwargs)


@pytest.fixture
def fest_user_factory() -> FestUserFactory:
    return FestUserFactory()


@pytest.fixture
def iiit_participant(fest_user_factory: FestUserFactory) -> FestUser:
    return fest_user_factory(role=FestUser.Role.IIIT_PARTICIPANT)


@pytest.fixture
def participant(fest_user_factory: FestUserFactory) -> FestUser:
    """A non-IIIT participant."""
    return fest_user_factory(role=FestUser.Role.NON_IIIT_PARTICIPANT)


@pytest.fixture
def other_participant(fest_user_factory: FestUserFactory) -> FestUser:
    return fest_user_factory(role=FestUser.Role.NON_IIIT_PARTICIPANT)


@pytest.fixture
def organizer(fest_user_factory: FestUserFactory) -> FestUser:
    return fest_user_factory(role=FestUser.Role.ORGANIZER, organizer_name="Robotics Club")


@pytest.fixture
def other_organizer(fest_user_factory: FestUserFactory) -> FestUser:
    return fest_user_factory(role=FestUser.Role.ORGANIZER, organizer_name="Music Club")


@pytest.fixture
def admin_user(fest_user_factory: FestUserFactory) -> FestUser:
    return fest_user_factory(role=FestUser.Role.ADMIN)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )
