"""
Snapshot store and periodic reconciliation ticker.

Each family's snapshot is replaced as a whole value; readers only ever see a
complete snapshot. The ticker re-runs the reconciliation pass against cached
snapshots so wall-clock driven changes (an event ending, midnight passing) are
picked up without hitting storage.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from core.config import settings
from schemas.snapshot import FamilySnapshot
from schemas.status import FamilyReconciliation
from services.errors import NotFoundError, SnapshotRefreshError
from services.family_repository import FamilyRepository
from services.reconciliation_service import evaluate_family

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[str], Awaitable[FamilySnapshot]]
Subscriber = Callable[[FamilyReconciliation], object]

class SnapshotStore:
    """Holds the latest snapshot per family; last started refresh wins."""

    def __init__(self, loader: SnapshotLoader):
        self._loader = loader
        self._snapshots: Dict[str, FamilySnapshot] = {}
        self._generations: Dict[str, int] = {}

    def get(self, family_id: str) -> Optional[FamilySnapshot]:
        return self._snapshots.get(family_id)

    async def refresh(self, family_id: str) -> FamilySnapshot:
        """
        Fetch a fresh snapshot and swap it in.

        Raises:
            SnapshotRefreshError: the fetch failed; the previous snapshot stays in use
        """
        generation = self._generations.get(family_id, 0) + 1
        self._generations[family_id] = generation

        try:
            snapshot = await self._loader(family_id)
        except NotFoundError:
            raise
        except SnapshotRefreshError:
            logger.warning(f"⚠️ Snapshot refresh failed for family {family_id}; keeping previous snapshot")
            raise
        except Exception as e:
            logger.error(f"❌ Snapshot refresh failed for family {family_id}: {e}")
            raise SnapshotRefreshError(family_id, str(e)) from e

        if self._generations.get(family_id) != generation:
            logger.info(f"🔄 Discarding stale snapshot fetch for family {family_id} (generation {generation})")
            return self._snapshots.get(family_id, snapshot)

        self._snapshots[family_id] = snapshot
        logger.debug(f"Snapshot swapped in for family {family_id} (generation {generation})")
        return snapshot

    async def get_or_refresh(self, family_id: str) -> FamilySnapshot:
        snapshot = self.get(family_id)
        if snapshot is not None:
            return snapshot
        return await self.refresh(family_id)

class ReconciliationTicker:
    """Re-evaluates watched (family, viewer) pairs every interval without re-fetching."""

    def __init__(
        self,
        store: SnapshotStore,
        interval_seconds: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.interval_seconds = interval_seconds or settings.RECONCILE_TICK_SECONDS
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._watched: Set[Tuple[str, str]] = set()
        self._subscribers: List[Subscriber] = []
        self._task: Optional[asyncio.Task] = None

    def watch(self, family_id: str, viewer_id: str) -> None:
        self._watched.add((family_id, viewer_id))

    def unwatch(self, family_id: str, viewer_id: str) -> None:
        self._watched.discard((family_id, viewer_id))

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> List[FamilyReconciliation]:
        now = self._clock()
        results = []
        for family_id, viewer_id in sorted(self._watched):
            snapshot = self.store.get(family_id)
            if snapshot is None:
                continue
            try:
                result = evaluate_family(snapshot, viewer_id, now)
            except Exception as e:
                logger.error(f"❌ Tick evaluation failed for family {family_id}: {e}", exc_info=True)
                continue
            results.append(result)
            await self._publish(result)
        return results

    async def _publish(self, result: FamilyReconciliation) -> None:
        for callback in self._subscribers:
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"❌ Reconciliation subscriber {callback!r} failed: {e}")

    async def _run(self) -> None:
        logger.info(f"⏱️ Reconciliation ticker started (every {self.interval_seconds}s)")
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.tick()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("⏱️ Reconciliation ticker stopped")

# Global instances wired to storage
snapshot_store = SnapshotStore(FamilyRepository.load_snapshot)
reconciliation_ticker = ReconciliationTicker(snapshot_store)
