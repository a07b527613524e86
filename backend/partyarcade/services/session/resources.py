import asyncio
import logging
from itertools import count

log = logging.getLogger(__name__)

_handle_ids = count(1)


class ResourceAcquisitionError(Exception):
    """A mini-game could not obtain its camera, detection model or audio."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f'{kind}: {message}')
        self.kind = kind


class ResourceHandle:
    """Lease on one exclusive resource (camera stream, model loop, audio output)."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.id = next(_handle_ids)
        self.released = False

    def release(self) -> None:
        if not self.released:
            self.released = True
            log.debug(f"[resource-release] kind={self.kind} id={self.id}")

    def __repr__(self):
        state = 'released' if self.released else 'held'
        return f'<ResourceHandle {self.kind}#{self.id} {state}>'


class ResourceProvider:
    """Hands out resource leases. ``acquire`` may suspend (permission prompts, model downloads)."""

    async def acquire(self, kind: str) -> ResourceHandle:
        raise NotImplementedError


class HeadlessResourceProvider(ResourceProvider):
    """Grants every request immediately; used when no real devices are attached."""

    async def acquire(self, kind: str) -> ResourceHandle:
        await asyncio.sleep(0)
        handle = ResourceHandle(kind)
        log.debug(f"[resource-acquire] kind={kind} id={handle.id}")
        return handle
