"""Read-only query selectors."""

from transport_kernel.selectors.approval_selector import ApprovalSelector
from transport_kernel.selectors.booking_selector import BookingSelector
from transport_kernel.selectors.requisition_selector import RequisitionSelector
from transport_kernel.selectors.trip_selector import TripSelector

__all__ = ["ApprovalSelector", "BookingSelector", "RequisitionSelector", "TripSelector"]
