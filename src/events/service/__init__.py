import typing as t

from django.db import models, transaction

T = t.TypeVar("T", bound=models.Model)


@transaction.atomic
def update_db_instance(instance: T, data: dict[str, t.Any]) -> T:
    """Updates a DB instance with the given field values, safely within a select_for_update lock."""
    instance = instance.__class__.objects.select_for_update().get(pk=instance.pk)  # type: ignore[attr-defined]
    for key, value in data.items():
        setattr(instance, key, value)
    instance.save()
    return instance
