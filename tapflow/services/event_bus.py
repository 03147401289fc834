"""
tapflow/services/event_bus.py

Durable event bus for the lead pipeline.

Events are rows in `pipeline_events`: sending an event queues one run per
function listening for that name, inside the caller's transaction. The
dispatcher (driven by APScheduler, or inline in tests / CLI) claims queued
runs per function up to that function's concurrency cap and executes them
on a thread pool.

Failure handling is a fixed retry count with exponential backoff; a run left
in 'running' past STALE_RUN_AFTER counts as a failed attempt. There is
no ordering guarantee between runs.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tapflow.core.database import SessionLocal
from tapflow.models.pipeline_event import PipelineEvent

logger = logging.getLogger(__name__)

# Handler signature: handler(db, data) -> result dict
Handler = Callable[[Session, dict], Optional[dict]]

# A run still 'running' after this long is treated as lost (worker crash)
STALE_RUN_AFTER = timedelta(minutes=15)


@dataclass
class PipelineFunction:
    id: str
    event: str
    handler: Handler
    concurrency: int = 5
    retries: int = 3


class EventBus:
    def __init__(self, session_factory=SessionLocal, stale_after: timedelta = STALE_RUN_AFTER):
        self.session_factory = session_factory
        self.stale_after = stale_after
        self._functions: dict[str, PipelineFunction] = {}

    # ------------------------------------------------------------------
    # REGISTRATION
    # ------------------------------------------------------------------

    def function(self, id: str, event: str, concurrency: int = 5, retries: int = 3):
        """Decorator registering a handler for a named event."""
        def decorator(handler: Handler) -> Handler:
            if id in self._functions:
                raise ValueError(f"Pipeline function '{id}' is already registered")
            self._functions[id] = PipelineFunction(
                id=id,
                event=event,
                handler=handler,
                concurrency=concurrency,
                retries=retries,
            )
            return handler
        return decorator

    @property
    def functions(self) -> list[PipelineFunction]:
        return list(self._functions.values())

    def listeners(self, event_name: str) -> list[PipelineFunction]:
        return [f for f in self._functions.values() if f.event == event_name]

    # ------------------------------------------------------------------
    # SENDING
    # ------------------------------------------------------------------

    def send(self, db: Session, name: str, data: dict) -> list[PipelineEvent]:
        """
        Queues the event for every listener. Does NOT commit: the rows land
        together with whatever the caller is writing.
        """
        now = datetime.utcnow()
        listeners = self.listeners(name)

        if not listeners:
            row = PipelineEvent(
                name=name,
                payload=data,
                status="skipped",
                max_retries=0,
                created_at=now,
                finished_at=now,
            )
            db.add(row)
            logger.debug(f"Event {name} has no listeners, stored as skipped")
            return [row]

        rows = []
        for fn in listeners:
            row = PipelineEvent(
                name=name,
                payload=data,
                function_id=fn.id,
                status="queued",
                attempts=0,
                max_retries=fn.retries,
                created_at=now,
            )
            db.add(row)
            rows.append(row)

        logger.info(f"📨 Queued {name} for {', '.join(f.id for f in listeners)}")
        return rows

    # ------------------------------------------------------------------
    # DISPATCH
    # ------------------------------------------------------------------

    def _recover_stale(self, db: Session, fn: PipelineFunction, now: datetime):
        """Stale 'running' rows count as a failed attempt so they stop holding a slot."""
        stale = db.query(PipelineEvent).filter(
            PipelineEvent.function_id == fn.id,
            PipelineEvent.status == "running",
            PipelineEvent.started_at < now - self.stale_after,
        ).all()

        for run in stale:
            run.attempts = (run.attempts or 0) + 1
            run.last_error = f"Run lost: still running after {self.stale_after}"
            if run.attempts > fn.retries:
                run.status = "failed"
                run.finished_at = now
            else:
                run.status = "queued"
                run.next_attempt_at = now
            logger.warning(f"🧟 {fn.id} run {run.id} was stuck in running, now {run.status}")

        if stale:
            db.flush()

    def _claim(self, respect_backoff: bool) -> dict[str, list[int]]:
        """Marks runnable rows as 'running' and returns their ids per function."""
        db = self.session_factory()
        claimed: dict[str, list[int]] = {}
        now = datetime.utcnow()

        try:
            for fn in self._functions.values():
                self._recover_stale(db, fn, now)

                running = db.query(func.count(PipelineEvent.id)).filter(
                    PipelineEvent.function_id == fn.id,
                    PipelineEvent.status == "running",
                ).scalar() or 0

                free_slots = fn.concurrency - running
                if free_slots <= 0:
                    continue

                query = db.query(PipelineEvent).filter(
                    PipelineEvent.function_id == fn.id,
                    PipelineEvent.status == "queued",
                )
                if respect_backoff:
                    query = query.filter(
                        (PipelineEvent.next_attempt_at == None) | (PipelineEvent.next_attempt_at <= now)
                    )

                batch = query.order_by(PipelineEvent.id).limit(free_slots).all()
                if not batch:
                    continue

                for row in batch:
                    row.status = "running"
                    row.started_at = now
                claimed[fn.id] = [row.id for row in batch]

            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        return claimed

    def _execute(self, function_id: str, run_id: int) -> str:
        """Runs one claimed row. Returns its final status."""
        fn = self._functions[function_id]
        db = self.session_factory()

        try:
            run = db.query(PipelineEvent).get(run_id)
            data = dict(run.payload or {})

            try:
                result = fn.handler(db, data)
                db.commit()
            except Exception as e:
                db.rollback()
                run = db.query(PipelineEvent).get(run_id)
                run.attempts = (run.attempts or 0) + 1
                run.last_error = f"{type(e).__name__}: {e}"

                if run.attempts > fn.retries:
                    run.status = "failed"
                    run.finished_at = datetime.utcnow()
                    logger.error(f"❌ {fn.id} run {run_id} failed after {run.attempts} attempts: {e}")
                else:
                    run.status = "queued"
                    run.next_attempt_at = datetime.utcnow() + timedelta(seconds=2 ** run.attempts)
                    logger.warning(f"🔁 {fn.id} run {run_id} attempt {run.attempts} failed, retrying: {e}")

                db.commit()
                return run.status

            run.status = "completed"
            run.result = result
            run.finished_at = datetime.utcnow()
            db.commit()
            return run.status

        finally:
            db.close()

    def dispatch(self, inline: bool = False, respect_backoff: bool = True) -> int:
        """
        One dispatch round. Returns how many runs were executed.
        inline=True runs everything on the calling thread.
        """
        claimed = self._claim(respect_backoff)
        if not claimed:
            return 0

        executed = 0
        for function_id, run_ids in claimed.items():
            fn = self._functions[function_id]

            if inline:
                for run_id in run_ids:
                    self._execute(function_id, run_id)
                    executed += 1
                continue

            with ThreadPoolExecutor(max_workers=fn.concurrency) as executor:
                futures = [executor.submit(self._execute, function_id, rid) for rid in run_ids]
                for future in as_completed(futures):
                    try:
                        future.result()
                    except Exception as e:
                        logger.error(f"💥 Dispatcher error in {function_id}: {e}")
                    executed += 1

        return executed

    def drain(self, max_rounds: int = 100) -> int:
        """Dispatches inline, ignoring backoff, until the queue is empty."""
        total = 0
        for _ in range(max_rounds):
            executed = self.dispatch(inline=True, respect_backoff=False)
            if executed == 0:
                break
            total += executed
        return total


bus = EventBus()


def send_event(db: Session, name: str, data: dict) -> list[PipelineEvent]:
    return bus.send(db, name, data)
