import typing as t

from ninja_extra import ControllerBase

from accounts.models import FestUser


class UserAwareController(ControllerBase):
    def user(self) -> FestUser:
        """Get the user for this request."""
        return t.cast(FestUser, self.context.request.user)  # type: ignore[union-attr]
