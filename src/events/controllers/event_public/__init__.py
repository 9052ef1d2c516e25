from .discovery import EventPublicDiscoveryController
from .orders import EventPublicOrdersController
from .registration import EventPublicRegistrationController

# Controllers in order to preserve path resolution.
# /registrations/... routes MUST come before the /{uuid:event_id} routes.
EVENT_PUBLIC_CONTROLLERS: list[type] = [
    EventPublicOrdersController,  # /events/registrations/{uuid:registration_id}/...
    EventPublicDiscoveryController,  # /events/, /events/{uuid:event_id}
    EventPublicRegistrationController,  # /events/{uuid:event_id}/register, purchase, orders
]

__all__ = [
    "EventPublicDiscoveryController",
    "EventPublicOrdersController",
    "EventPublicRegistrationController",
    "EVENT_PUBLIC_CONTROLLERS",
]
