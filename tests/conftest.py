import pytest

from models.schemas import Device, Room, RoomPurpose, SolarSettings
from storage.client import StorageClient


@pytest.fixture
def settings():
    return SolarSettings()


@pytest.fixture
def lab_a():
    return Room(id="r-lab-a", name="Lab A", purpose=RoomPurpose.LAB)


@pytest.fixture
def lab_a_heater():
    return Device(id="d-1", room_id="r-lab-a", name="Heater", quantity=2, power_w=1500, usage_hours=6)


@pytest.fixture
def campus():
    """Three rooms: a heavy lab, a light office and an empty classroom."""
    rooms = [
        Room(id="r-1", name="Lab A", purpose=RoomPurpose.LAB),
        Room(id="r-2", name="Staff Office", purpose=RoomPurpose.OFFICE),
        Room(id="r-3", name="Classroom 101", purpose=RoomPurpose.CLASSROOM),
    ]
    devices = [
        Device(id="d-1", room_id="r-1", name="Heater", quantity=2, power_w=1500, usage_hours=6),
        Device(id="d-2", room_id="r-1", name="Fume Hood", quantity=1, power_w=400, usage_hours=8),
        Device(id="d-3", room_id="r-2", name="Laptop", quantity=4, power_w=60, usage_hours=8),
        Device(id="d-4", room_id="r-2", name="LED Panel", quantity=6, power_w=36, usage_hours=10),
    ]
    return rooms, devices


@pytest.fixture
def storage():
    client = StorageClient().open()
    yield client
    client.close()
