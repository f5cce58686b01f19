"""AutosaveBridge — fire-and-forget persistence of the whole answer set.

Every answer change hands a snapshot of the entire answer set to
:meth:`AutosaveBridge.schedule`, which starts an asyncio task and returns
immediately.  The wizard never awaits these tasks for correctness: the
in-memory answers stay the source of truth whatever storage does.

Ordering: tasks acquire a FIFO ``asyncio.Lock`` before calling the backend,
so one bridge never has two writes in flight and writes reach the backend in
the order they were scheduled.  Each snapshot also carries a monotonic
``revision`` so the backend can drop a stale write that arrives late from
some other client of the same intake.

Failures are logged and recorded (``failures``, ``last_error``); there is no
retry and no rollback.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

from intake_rulesets.interfaces import IntakeBackend

logger = logging.getLogger(__name__)

SaveStatus = Literal["idle", "saving", "saved", "error"]


class AutosaveBridge:
    """Serializes whole-object persist calls for one intake token.

    Args:
        backend: the storage collaborator
        token: client access token of the intake
        revision: last revision known to be stored (from ``load_intake``)
    """

    def __init__(self, backend: IntakeBackend, token: str, *, revision: int = 0) -> None:
        self._backend = backend
        self._token = token
        self._revision = revision
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

        self.saved_revision: int = revision
        self.last_saved_at: datetime | None = None
        self.last_error: str | None = None
        self.failures: int = 0
        # Outcome of the most recently *completed* write
        self._last_outcome: SaveStatus = "idle"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def revision(self) -> int:
        """Revision stamped on the most recently scheduled snapshot."""
        return self._revision

    @property
    def pending(self) -> int:
        return sum(1 for t in self._pending if not t.done())

    @property
    def status(self) -> SaveStatus:
        if self.pending:
            return "saving"
        return self._last_outcome

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, answers: Mapping[str, Any]) -> asyncio.Task:
        """Start persisting a snapshot of ``answers``; do not wait for it.

        Must be called from a running event loop.
        """
        self._revision += 1
        snapshot = copy.deepcopy(dict(answers))
        task = asyncio.get_running_loop().create_task(
            self._persist(snapshot, self._revision),
            name=f"autosave:{self._token}:{self._revision}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled write has finished (successfully or not)."""
        while self.pending:
            await asyncio.gather(*[t for t in self._pending if not t.done()])

    async def _persist(self, snapshot: dict[str, Any], revision: int) -> None:
        async with self._lock:
            try:
                await self._backend.persist_answers(
                    self._token, snapshot, revision=revision
                )
            except Exception as exc:
                # Best-effort: keep editing, surface the failure to observers
                self.failures += 1
                self.last_error = str(exc) or exc.__class__.__name__
                self._last_outcome = "error"
                logger.warning(
                    "Autosave failed for intake %s (revision %d): %s",
                    self._token, revision, self.last_error,
                )
                return

            self.saved_revision = max(self.saved_revision, revision)
            self.last_saved_at = datetime.now(timezone.utc)
            self.last_error = None
            self._last_outcome = "saved"
            logger.debug("Autosaved intake %s at revision %d", self._token, revision)
