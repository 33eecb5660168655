from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from smallchat.config import MAX_CLIENTS


class RegistryError(Exception):
    pass


class DuplicateHandle(RegistryError):
    """A handle was registered twice while still live."""


class RegistryFull(RegistryError):
    """The handle does not fit in the slot table."""


def default_display_name(handle: int) -> str:
    return f"user:{handle}"


@dataclass
class ConnectionRecord:
    handle: int
    sock: object
    display_name: str
    address: Optional[tuple] = None


class ConnectionRegistry:
    """
    Live connections indexed by handle.

    Slot ``h`` of the table holds the record for handle ``h`` or ``None``.
    ``highest_live_handle`` bounds every scan and is ``None`` when empty.
    """

    def __init__(self, max_handle: int = MAX_CLIENTS):
        self.max_handle = max_handle
        self._slots: List[Optional[ConnectionRecord]] = [None] * max_handle
        self._count = 0
        self.highest_live_handle: Optional[int] = None

    def register(self, handle: int, sock, address=None) -> ConnectionRecord:
        if handle < 0 or handle >= self.max_handle:
            raise RegistryFull(f"handle {handle} outside [0, {self.max_handle})")
        if self._slots[handle] is not None:
            raise DuplicateHandle(f"handle {handle} is already registered")

        record = ConnectionRecord(
            handle=handle,
            sock=sock,
            display_name=default_display_name(handle),
            address=address,
        )
        self._slots[handle] = record
        self._count += 1
        if self.highest_live_handle is None or handle > self.highest_live_handle:
            self.highest_live_handle = handle
        return record

    def unregister(self, handle: int) -> ConnectionRecord:
        record = self.get(handle)
        if record is None:
            raise KeyError(handle)

        record.sock.close()
        self._slots[handle] = None
        self._count -= 1

        if handle == self.highest_live_handle:
            self.highest_live_handle = None
            for j in range(handle - 1, -1, -1):
                if self._slots[j] is not None:
                    self.highest_live_handle = j
                    break
        return record

    def get(self, handle: int) -> Optional[ConnectionRecord]:
        if 0 <= handle < self.max_handle:
            return self._slots[handle]
        return None

    def for_each_live(self, fn: Callable[[ConnectionRecord], None]) -> None:
        for record in self:
            fn(record)

    def __iter__(self) -> Iterator[ConnectionRecord]:
        if self.highest_live_handle is None:
            return
        for record in self._slots[: self.highest_live_handle + 1]:
            if record is not None:
                yield record

    def __contains__(self, handle) -> bool:
        return self.get(handle) is not None

    def __len__(self) -> int:
        return self._count
