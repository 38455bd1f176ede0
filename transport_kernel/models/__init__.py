"""ORM models for the transport kernel."""

from transport_kernel.models.approval import Approval
from transport_kernel.models.fleet import Driver, Vehicle
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.trip import Ticket, Trip
from transport_kernel.models.user import User

__all__ = [
    "Approval",
    "Driver",
    "Requisition",
    "Ticket",
    "Trip",
    "User",
    "Vehicle",
]
