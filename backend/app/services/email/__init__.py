from services.email.client import (
    EmailConfigError,
    EmailDeliveryError,
    EmailError,
    ResendClient,
)
from services.email.dispatcher import EmailDispatcher
from services.email.templates import render_maintenance_email

__all__ = [
    "EmailConfigError",
    "EmailDeliveryError",
    "EmailError",
    "ResendClient",
    "EmailDispatcher",
    "render_maintenance_email",
]
