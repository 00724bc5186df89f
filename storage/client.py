import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from models.schemas import (
    Device,
    DeviceCreate,
    DeviceUpdate,
    Room,
    RoomCreate,
    SolarSettings,
    SolarSettingsUpdate,
)

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class RoomNotFoundError(StorageError):
    pass


class DeviceNotFoundError(StorageError):
    pass


class RecordKind(str, Enum):
    ROOMS = "rooms"
    DEVICES = "devices"
    SETTINGS = "settings"


@dataclass
class ChangeEvent:
    user_id: str
    kind: RecordKind


@dataclass
class Snapshot:
    """Consistent read of one user's inventory and settings."""

    rooms: List[Room]
    devices: List[Device]
    settings: SolarSettings


Listener = Callable[[ChangeEvent], None]


@dataclass
class _UserData:
    rooms: Dict[str, Room] = field(default_factory=dict)
    devices: Dict[str, Device] = field(default_factory=dict)
    settings: Optional[SolarSettings] = None


class StorageClient:
    """In-memory document store for rooms, devices and solar settings.

    Records are scoped by an opaque user id. Every mutation notifies the
    subscribed listeners after it has been applied.
    """

    def __init__(self):
        self._users: Dict[str, _UserData] = {}
        self._listeners: List[Listener] = []
        self._open = False

    # --- lifecycle ---

    def open(self) -> "StorageClient":
        self._open = True
        logger.info("Storage client opened")
        return self

    def close(self) -> None:
        self._listeners.clear()
        self._open = False
        logger.info("Storage client closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "StorageClient":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    # --- change notification ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, user_id: str, kind: RecordKind) -> None:
        event = ChangeEvent(user_id=user_id, kind=kind)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # the write is already applied; one bad listener must not hide it
                logger.exception(f"Listener failed on {kind.value} change for {user_id}")

    def _user(self, user_id: str) -> _UserData:
        if not self._open:
            raise StorageError("Storage client is not open.")
        return self._users.setdefault(user_id, _UserData())

    # --- rooms ---

    def list_rooms(self, user_id: str) -> List[Room]:
        return list(self._user(user_id).rooms.values())

    def add_room(self, user_id: str, data: RoomCreate) -> Room:
        room = Room(id=uuid.uuid4().hex, **data.model_dump())
        self._user(user_id).rooms[room.id] = room
        self._notify(user_id, RecordKind.ROOMS)
        return room

    def delete_room(self, user_id: str, room_id: str) -> None:
        """Delete a room and every device that references it."""
        user = self._user(user_id)
        if room_id not in user.rooms:
            raise RoomNotFoundError(f"Room {room_id} not found")
        del user.rooms[room_id]
        orphaned = [d.id for d in user.devices.values() if d.room_id == room_id]
        for device_id in orphaned:
            del user.devices[device_id]

        # listeners only run once the cascade is complete
        self._notify(user_id, RecordKind.ROOMS)
        if orphaned:
            logger.info(f"Deleted {len(orphaned)} device(s) with room {room_id}")
            self._notify(user_id, RecordKind.DEVICES)

    # --- devices ---

    def list_devices(self, user_id: str) -> List[Device]:
        return list(self._user(user_id).devices.values())

    def add_device(self, user_id: str, data: DeviceCreate) -> Device:
        user = self._user(user_id)
        if data.room_id not in user.rooms:
            raise RoomNotFoundError(f"Room {data.room_id} not found")
        device = Device(id=uuid.uuid4().hex, **data.model_dump())
        user.devices[device.id] = device
        self._notify(user_id, RecordKind.DEVICES)
        return device

    def update_device(self, user_id: str, device_id: str, data: DeviceUpdate) -> Device:
        user = self._user(user_id)
        current = user.devices.get(device_id)
        if current is None:
            raise DeviceNotFoundError(f"Device {device_id} not found")
        updated = current.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        user.devices[device_id] = updated
        self._notify(user_id, RecordKind.DEVICES)
        return updated

    def delete_device(self, user_id: str, device_id: str) -> None:
        user = self._user(user_id)
        if device_id not in user.devices:
            raise DeviceNotFoundError(f"Device {device_id} not found")
        del user.devices[device_id]
        self._notify(user_id, RecordKind.DEVICES)

    # --- settings ---

    def get_settings(self, user_id: str) -> SolarSettings:
        """Return the user's settings, persisting the defaults on first read."""
        user = self._user(user_id)
        if user.settings is None:
            self._materialize_settings(user)
            self._notify(user_id, RecordKind.SETTINGS)
        return user.settings

    def _materialize_settings(self, user: _UserData) -> SolarSettings:
        if user.settings is None:
            user.settings = SolarSettings()
        return user.settings

    def update_settings(self, user_id: str, data: SolarSettingsUpdate) -> SolarSettings:
        """Merge ``data`` into the stored settings; unset fields keep their value."""
        user = self._user(user_id)
        current = self._materialize_settings(user)
        merged = current.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        user.settings = merged
        self._notify(user_id, RecordKind.SETTINGS)
        return merged

    def snapshot(self, user_id: str) -> Snapshot:
        """Read rooms, devices and settings together.

        Defaults are persisted here without an event, so a listener that takes a
        snapshot does not trigger itself again.
        """
        settings = self._materialize_settings(self._user(user_id))
        return Snapshot(
            rooms=self.list_rooms(user_id),
            devices=self.list_devices(user_id),
            settings=settings,
        )
