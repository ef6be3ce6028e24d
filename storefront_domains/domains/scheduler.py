"""
Fixed-interval polling of domain status while onboarding is in progress.
"""

import asyncio
import inspect
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Union

from .errors import DomainError
from .models import DomainSettings, DomainStage
from .reconciler import StatusReconciler

logger = logging.getLogger("storefront_domains.domains.scheduler")

UpdateCallback = Callable[[Optional[DomainSettings]], Union[None, Awaitable[None]]]


class PollingHandle:
    """One polling session, e.g. an open settings view."""

    def __init__(self, tenant_id: str):
        self.id = uuid.uuid4().hex
        self.tenant_id = tenant_id
        self.ticks = 0
        self._stopped = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> None:
        """Wait until the polling loop has exited."""
        if self._task is not None:
            await self._task


class PollingScheduler:
    """
    Runs StatusReconciler.check for a tenant on a fixed interval.

    Checks run immediately on start, then every ``interval`` seconds, one at
    a time per handle. A loop ends by itself once the domain is fully active
    or removed. Stopping a handle wakes its sleep but never cancels a check
    that is already running; that check still persists its result.
    """

    def __init__(
        self,
        reconciler: StatusReconciler,
        interval: float = 10.0,
        max_ticks: int = 0,
    ):
        self.reconciler = reconciler
        self.interval = interval
        self.max_ticks = max_ticks
        self._handles: Dict[str, PollingHandle] = {}

    def start(self, tenant_id: str, on_update: Optional[UpdateCallback] = None) -> PollingHandle:
        """Start polling for a tenant and return the handle needed to stop it."""
        handle = PollingHandle(tenant_id)
        self._handles[handle.id] = handle
        handle._task = asyncio.create_task(self._run(handle, on_update))
        logger.info(f"Polling started for {tenant_id} ({handle.id[:8]})")
        return handle

    def stop(self, handle: PollingHandle) -> None:
        """Stop a polling session."""
        if not handle.stopped:
            handle._stopped.set()
            logger.info(f"Polling stopped for {handle.tenant_id} ({handle.id[:8]})")
        self._handles.pop(handle.id, None)

    def stop_tenant(self, tenant_id: str) -> int:
        """Stop every polling session of a tenant."""
        handles = [h for h in self._handles.values() if h.tenant_id == tenant_id]
        for handle in handles:
            self.stop(handle)
        return len(handles)

    def get(self, handle_id: str) -> Optional[PollingHandle]:
        return self._handles.get(handle_id)

    def list_handles(self, tenant_id: Optional[str] = None) -> List[PollingHandle]:
        return [
            h for h in self._handles.values()
            if tenant_id is None or h.tenant_id == tenant_id
        ]

    async def shutdown(self) -> None:
        """Stop all sessions and wait for in-flight checks to finish."""
        handles = list(self._handles.values())
        for handle in handles:
            self.stop(handle)
        await asyncio.gather(*(h.wait() for h in handles), return_exceptions=True)
        logger.info("Polling scheduler shut down")

    async def _run(self, handle: PollingHandle, on_update: Optional[UpdateCallback]):
        try:
            while not handle.stopped:
                handle.ticks += 1
                try:
                    settings = await self.reconciler.check(handle.tenant_id)
                except DomainError as e:
                    logger.warning(
                        f"Check {handle.ticks} failed for {handle.tenant_id}, "
                        f"retrying in {self.interval}s: {e}"
                    )
                except Exception:
                    logger.exception(f"Unexpected error checking {handle.tenant_id}")
                else:
                    if handle.stopped:
                        break
                    await self._notify(handle, on_update, settings)
                    if settings is None or settings.stage in (DomainStage.ABSENT, DomainStage.ACTIVE):
                        logger.info(
                            f"Polling finished for {handle.tenant_id} after "
                            f"{handle.ticks} checks"
                        )
                        break

                if self.max_ticks and handle.ticks >= self.max_ticks:
                    logger.info(
                        f"Polling for {handle.tenant_id} reached {self.max_ticks} checks"
                    )
                    break

                try:
                    await asyncio.wait_for(handle._stopped.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            handle._stopped.set()
            self._handles.pop(handle.id, None)

    async def _notify(
        self,
        handle: PollingHandle,
        on_update: Optional[UpdateCallback],
        settings: Optional[DomainSettings],
    ) -> None:
        if on_update is None:
            return
        try:
            result = on_update(settings)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Update callback failed for {handle.tenant_id}")
