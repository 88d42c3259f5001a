"""
Identity-bound asynchronous state.

The permission evaluator and the approval gate share one lifecycle: every
identity change starts a fresh lookup, publishes a pending snapshot right away,
and later publishes the lookup result, unless another identity change happened
in the meantime, in which case the result is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, List, Optional, Set, TypeVar

from acervo.modules.access.errors import AccessError, AccessLookupError, AccessTimeout
from acervo.modules.auth.schemas import Identity

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


class ResolutionStatus(str, Enum):
    LOADING = "loading"
    RESOLVED = "resolved"
    ERROR = "error"
    # Only produced once approval is applied (session.combine)
    SIGNED_OUT = "signed_out"
    AWAITING_APPROVAL = "awaiting_approval"


async def bounded_lookup(
    lookup: Awaitable[T],
    timeout: Optional[float],
    identity_id: str,
    kind: str,
) -> T:
    """Await a directory lookup, mapping timeouts and stray exceptions to AccessLookupError."""
    try:
        if timeout is None:
            return await lookup
        return await asyncio.wait_for(lookup, timeout)
    except asyncio.TimeoutError:
        logger.error(f"{kind} lookup for {identity_id} timed out after {timeout}s")
        raise AccessTimeout(f"{kind} lookup timed out", identity_id=identity_id, kind=kind)
    except AccessError:
        raise
    except Exception as e:
        logger.error(f"Error looking up {kind} for {identity_id}: {e}")
        raise AccessLookupError(str(e), identity_id=identity_id, kind=kind) from e


class IdentityBoundState(Generic[S]):
    """Latest snapshot for the current identity, recomputed on every identity change.

    Subclasses provide the pending, signed-out and failed snapshots plus the
    lookup itself. Lookups run as tasks on the running event loop; a result is
    published only if its generation is still current.
    """

    kind = "state"

    def __init__(self):
        self._generation = 0
        self._identity: Optional[Identity] = None
        self._snapshot: S = self._pending(None)
        self._listeners: List[Callable[[S], None]] = []
        self._settled = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def snapshot(self) -> S:
        return self._snapshot

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def identity_changed(self, identity: Optional[Identity]) -> None:
        current_id = self._identity.id if self._identity else None
        new_id = identity.id if identity else None
        if self._generation and current_id == new_id:
            return
        self._start(identity)

    def refresh(self) -> None:
        """Re-run the lookup for the current identity (e.g. after an admin mutation)."""
        self._start(self._identity)

    async def wait_settled(self) -> S:
        """Wait until the lookup for the current identity has been published."""
        while True:
            generation = self._generation
            await self._settled.wait()
            if generation == self._generation:
                return self._snapshot

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()

    def _start(self, identity: Optional[Identity]) -> None:
        self._generation += 1
        generation = self._generation
        self._identity = identity
        # Wake waiters of the superseded generation so they re-check
        self._settled.set()
        self._settled = asyncio.Event()

        if identity is None:
            self._publish(self._signed_out())
            self._settled.set()
            return

        self._publish(self._pending(identity))
        task = asyncio.get_running_loop().create_task(self._run(generation, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, generation: int, identity: Identity) -> None:
        try:
            snapshot = await self._lookup(identity)
        except asyncio.CancelledError:
            raise
        except AccessError as e:
            snapshot = self._failed(identity, e)
        except Exception as e:
            logger.exception(f"Unexpected error resolving {self.kind} for {identity.id}")
            snapshot = self._failed(identity, AccessLookupError(str(e), identity_id=identity.id, kind=self.kind))

        if generation != self._generation:
            logger.debug(f"Discarding stale {self.kind} result for {identity.id}")
            return
        self._publish(snapshot)
        self._settled.set()

    def _publish(self, snapshot: S) -> None:
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    def _pending(self, identity: Optional[Identity]) -> S:
        raise NotImplementedError

    def _signed_out(self) -> S:
        raise NotImplementedError

    def _failed(self, identity: Identity, error: AccessError) -> S:
        raise NotImplementedError

    async def _lookup(self, identity: Identity) -> S:
        raise NotImplementedError
