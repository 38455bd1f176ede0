"""
Service layer for the fleet: vehicles and drivers.

Registration and license numbers are unique.  Creating a driver promotes
the backing user to role DRIVER.  Only ACTIVE vehicles and drivers can be
assigned to a requisition; that rule is checked by the requisition
workflow, not here.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from transport_kernel.domain.resources import (
    DriverStatus,
    DriverSummary,
    VehicleStatus,
    VehicleSummary,
)
from transport_kernel.domain.roles import Role
from transport_kernel.exceptions import (
    DriverNotFoundError,
    DuplicateDriverError,
    DuplicateVehicleError,
    UserNotFoundError,
    VehicleNotFoundError,
)
from transport_kernel.logging_config import get_logger
from transport_kernel.models.fleet import Driver, Vehicle
from transport_kernel.models.user import User
from transport_kernel.services.base import BaseService

logger = get_logger("services.fleet")


class FleetService(BaseService[Vehicle]):
    """Vehicles and drivers."""

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def _get_vehicle(self, vehicle_id: UUID) -> Vehicle:
        vehicle = self.session.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise VehicleNotFoundError(str(vehicle_id))
        return vehicle

    def get_vehicle(self, vehicle_id: UUID) -> VehicleSummary:
        return self._get_vehicle(vehicle_id).to_dto()

    def list_vehicles(
        self,
        status: VehicleStatus | None = None,
        vehicle_type: str | None = None,
        min_capacity: int | None = None,
    ) -> list[VehicleSummary]:
        stmt = select(Vehicle)
        if status is not None:
            stmt = stmt.where(Vehicle.status == VehicleStatus(status).value)
        if vehicle_type is not None:
            stmt = stmt.where(Vehicle.vehicle_type == vehicle_type)
        if min_capacity is not None:
            stmt = stmt.where(Vehicle.capacity >= min_capacity)
        stmt = stmt.order_by(Vehicle.registration_number)
        return [v.to_dto() for v in self.session.execute(stmt).scalars().all()]

    def create_vehicle(
        self,
        registration_number: str,
        vehicle_type: str,
        capacity: int,
        status: VehicleStatus = VehicleStatus.ACTIVE,
    ) -> VehicleSummary:
        """
        Register a vehicle.

        Raises:
            DuplicateVehicleError: registration number already used.
            ValueError: capacity below 1.
        """
        if capacity < 1:
            raise ValueError(f"Vehicle capacity must be >= 1, got {capacity}")

        existing = self.session.execute(
            select(Vehicle.id).where(Vehicle.registration_number == registration_number)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateVehicleError(registration_number)

        now = self.clock.now()
        vehicle = Vehicle(
            registration_number=registration_number,
            vehicle_type=vehicle_type,
            capacity=capacity,
            status=VehicleStatus(status).value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(vehicle)
        self.session.flush()

        logger.info(
            "vehicle_created",
            extra={"vehicle_id": str(vehicle.id), "registration_number": registration_number},
        )
        return vehicle.to_dto()

    def update_vehicle_status(
        self, vehicle_id: UUID, status: VehicleStatus,
    ) -> VehicleSummary:
        vehicle = self._get_vehicle(vehicle_id)
        vehicle.status = VehicleStatus(status).value
        vehicle.updated_at = self.clock.now()
        self.session.flush()

        logger.info(
            "vehicle_status_changed",
            extra={"vehicle_id": str(vehicle_id), "status": vehicle.status},
        )
        return vehicle.to_dto()

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def _get_driver(self, driver_id: UUID) -> Driver:
        driver = self.session.get(Driver, driver_id)
        if driver is None:
            raise DriverNotFoundError(str(driver_id))
        return driver

    def get_driver(self, driver_id: UUID) -> DriverSummary:
        return self._get_driver(driver_id).to_dto()

    def list_drivers(self, status: DriverStatus | None = None) -> list[DriverSummary]:
        stmt = select(Driver)
        if status is not None:
            stmt = stmt.where(Driver.status == DriverStatus(status).value)
        stmt = stmt.order_by(Driver.license_number)
        return [d.to_dto() for d in self.session.execute(stmt).scalars().all()]

    def create_driver(
        self,
        user_id: UUID,
        license_number: str,
        status: DriverStatus = DriverStatus.ACTIVE,
    ) -> DriverSummary:
        """
        Register a driver for an existing user and set the user's role to DRIVER.

        Raises:
            UserNotFoundError: no such user.
            DuplicateDriverError: license number or user already registered.
        """
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))

        existing = self.session.execute(
            select(Driver.id).where(
                (Driver.license_number == license_number) | (Driver.user_id == user_id)
            )
        ).first()
        if existing is not None:
            raise DuplicateDriverError(license_number)

        now = self.clock.now()
        user.role = Role.DRIVER.value
        user.updated_at = now
        driver = Driver(
            user=user,
            license_number=license_number,
            status=DriverStatus(status).value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(driver)
        self.session.flush()

        logger.info(
            "driver_created",
            extra={"driver_id": str(driver.id), "user_id": str(user_id)},
        )
        return driver.to_dto()

    def update_driver_status(self, driver_id: UUID, status: DriverStatus) -> DriverSummary:
        driver = self._get_driver(driver_id)
        driver.status = DriverStatus(status).value
        driver.updated_at = self.clock.now()
        self.session.flush()

        logger.info(
            "driver_status_changed",
            extra={"driver_id": str(driver_id), "status": driver.status},
        )
        return driver.to_dto()
