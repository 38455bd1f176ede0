"""Tests for FleetService -- vehicles and drivers."""

from uuid import uuid4

import pytest

from transport_kernel.domain.resources import DriverStatus, VehicleStatus
from transport_kernel.domain.roles import Role
from transport_kernel.exceptions import (
    DriverNotFoundError,
    DuplicateDriverError,
    DuplicateVehicleError,
    UserNotFoundError,
    VehicleNotFoundError,
)


class TestVehicles:
    def test_create_and_get(self, fleet_service):
        created = fleet_service.create_vehicle("DHAKA-METRO-GA-11", "Bus", 40)

        fetched = fleet_service.get_vehicle(created.id)

        assert fetched == created
        assert fetched.status == VehicleStatus.ACTIVE
        assert fetched.is_available

    def test_duplicate_registration(self, fleet_service):
        fleet_service.create_vehicle("DHAKA-1", "Car", 4)
        with pytest.raises(DuplicateVehicleError):
            fleet_service.create_vehicle("DHAKA-1", "Car", 4)

    def test_capacity_must_be_positive(self, fleet_service):
        with pytest.raises(ValueError):
            fleet_service.create_vehicle("DHAKA-2", "Car", 0)

    def test_status_change(self, fleet_service, create_vehicle):
        vehicle = create_vehicle()

        updated = fleet_service.update_vehicle_status(vehicle.id, VehicleStatus.INACTIVE)

        assert updated.status == VehicleStatus.INACTIVE
        assert not updated.is_available

    def test_list_filters(self, fleet_service):
        bus = fleet_service.create_vehicle("B-1", "Bus", 40)
        fleet_service.create_vehicle("C-1", "Car", 4)
        micro = fleet_service.create_vehicle("M-1", "Microbus", 12)
        fleet_service.update_vehicle_status(micro.id, VehicleStatus.UNDER_MAINTENANCE)

        big_active = fleet_service.list_vehicles(status=VehicleStatus.ACTIVE, min_capacity=10)

        assert [v.id for v in big_active] == [bus.id]
        assert [v.registration_number for v in fleet_service.list_vehicles()] == ["B-1", "C-1", "M-1"]
        assert [v.id for v in fleet_service.list_vehicles(vehicle_type="Microbus")] == [micro.id]

    def test_unknown_vehicle(self, fleet_service):
        with pytest.raises(VehicleNotFoundError):
            fleet_service.get_vehicle(uuid4())


class TestDrivers:
    def test_create_driver_promotes_user(self, fleet_service, user_service, create_user):
        user = create_user(Role.USER)

        driver = fleet_service.create_driver(user.id, "DL-0001")

        assert driver.user.id == user.id
        assert driver.status == DriverStatus.ACTIVE
        assert user_service.get_user(user.id).role == "DRIVER"

    def test_duplicate_license(self, fleet_service, create_user):
        fleet_service.create_driver(create_user().id, "DL-0002")
        with pytest.raises(DuplicateDriverError):
            fleet_service.create_driver(create_user().id, "DL-0002")

    def test_user_registered_twice(self, fleet_service, create_user):
        user = create_user()
        fleet_service.create_driver(user.id, "DL-0003")
        with pytest.raises(DuplicateDriverError):
            fleet_service.create_driver(user.id, "DL-0004")

    def test_unknown_user(self, fleet_service):
        with pytest.raises(UserNotFoundError):
            fleet_service.create_driver(uuid4(), "DL-0005")

    def test_status_change_and_list(self, fleet_service, create_driver):
        on_duty = create_driver("DL-A")
        away = create_driver("DL-B")
        fleet_service.update_driver_status(away.id, DriverStatus.ON_LEAVE)

        active = fleet_service.list_drivers(DriverStatus.ACTIVE)

        assert [d.id for d in active] == [on_duty.id]
        assert not fleet_service.get_driver(away.id).is_available

    def test_unknown_driver(self, fleet_service):
        with pytest.raises(DriverNotFoundError):
            fleet_service.get_driver(uuid4())
