"""
Record manager: the in-memory collection of user records kept in sync with
the records service.

The manager is the only component that talks to the service. Consumers read
immutable snapshots and trigger mutations through ``load``, ``create``,
``update`` and ``remove``; they never change the collection directly.

Rules:

- Mutations are not optimistic. The collection changes only after the
  service confirms, and always takes the service's copy of a record.
- Local checks (unknown id, invalid fields) fail before any request is made
  and leave request states untouched.
- Writes on the same id run one after the other. A write queued behind
  another re-checks that the id still exists before issuing its request.
- ``load`` calls made while a load is in flight join it instead of issuing a
  second request.
- After ``unmount`` every late response is discarded and its caller gets
  ``ManagerClosedError``.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional, Tuple

from user_manager.manager.client import RecordServiceClient
from user_manager.manager.config import ManagerConfig
from user_manager.manager.errors import ManagerClosedError, NotFoundError, RequestError
from user_manager.manager.models import Record
from user_manager.manager.state import Operation, RequestState
from user_manager.manager.validation import validate_create, validate_update

logger = logging.getLogger(__name__)

Listener = Callable[["RecordManager"], None]


class RecordManager:
    """Owns the record collection and its per-operation request states."""

    def __init__(
        self,
        client: Optional[RecordServiceClient] = None,
        *,
        config: Optional[ManagerConfig] = None,
    ) -> None:
        self.config = config or ManagerConfig.from_env()
        self._client = client or RecordServiceClient.from_config(self.config)
        self._records: List[Record] = []
        self._states: Dict[Operation, RequestState] = {op: RequestState.idle() for op in Operation}
        self._listeners: List[Listener] = []
        # Per-id marker of the latest write; resolved when that write finishes
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._load_task: Optional[asyncio.Task] = None
        self._mounted = False
        self._generation = 0

    # -------------------- lifecycle --------------------

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> None:
        """Open the transport and run the initial load.

        An initial-load failure is kept in the load state rather than raised,
        so a mounted manager is always usable (e.g. to retry ``load``).
        """
        if self._mounted:
            return
        await self._client.open()
        self._mounted = True
        logger.info("record_manager_mounted api_url=%s", self._client.base_url)
        try:
            await self.load()
        except RequestError as exc:
            logger.warning("initial_load_failed reason=%s", exc)

    async def unmount(self) -> None:
        """Discard local state and close the transport."""
        if not self._mounted:
            return
        self._mounted = False
        self._generation += 1
        self._load_task = None
        self._records = []
        self._states = {op: RequestState.idle() for op in Operation}
        self._notify()
        await self._client.aclose()
        logger.info("record_manager_unmounted")

    async def __aenter__(self) -> "RecordManager":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    # -------------------- read side --------------------

    def snapshot(self) -> Tuple[Record, ...]:
        """Immutable view of the collection in store order."""
        return tuple(self._records)

    @property
    def records(self) -> Tuple[Record, ...]:
        return self.snapshot()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> Record:
        index = self._index_of(str(record_id))
        if index is None:
            raise NotFoundError(str(record_id))
        return self._records[index]

    def state(self, operation: Operation | str) -> RequestState:
        return self._states[Operation(operation)]

    def states(self) -> Dict[Operation, RequestState]:
        return dict(self._states)

    def pending_ids(self) -> Tuple[str, ...]:
        """Identifiers with a write in flight."""
        return tuple(self._in_flight)

    # -------------------- listeners --------------------

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener(manager)`` after every collection or state change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error("Error notifying listener %s: %s", getattr(listener, "__name__", listener), e)

    # -------------------- operations --------------------

    async def load(self) -> Tuple[Record, ...]:
        """Replace the collection with the store's record set."""
        self._ensure_mounted()
        task = self._load_task
        if task is None or task.done():
            task = asyncio.create_task(self._load(self._generation))
            task.add_done_callback(self._on_load_complete)
            self._load_task = task
        else:
            logger.debug("load_joined_in_flight")
        return await asyncio.shield(task)

    async def create(self, fields: Mapping[str, Any]) -> Record:
        """Create a record in the store and append the confirmed copy."""
        self._ensure_mounted()
        payload = validate_create(fields)
        generation = self._generation
        self._set_state(Operation.CREATE, RequestState.loading())
        result = await self._client.create_record(payload)
        self._check_current(generation, Operation.CREATE)
        if not result.ok:
            self._fail(Operation.CREATE, result.error)
        record: Record = result.value
        index = self._index_of(record.id)
        if index is None:
            self._records.append(record)
        else:
            # A concurrent load already brought this record in
            self._records[index] = record
        logger.debug("record_created id=%s", record.id)
        self._set_state(Operation.CREATE, RequestState.success())
        return record

    async def update(self, record_id: str, fields: Mapping[str, Any]) -> Record:
        """Send a partial update and replace the local record with the store's copy."""
        self._ensure_mounted()
        record_id = str(record_id)
        self._require(record_id)
        payload = validate_update(fields)
        generation = self._generation
        async with self._serialized(record_id):
            self._check_current(generation, Operation.UPDATE)
            self._require(record_id)
            self._set_state(Operation.UPDATE, RequestState.loading())
            result = await self._client.update_record(record_id, payload)
            self._check_current(generation, Operation.UPDATE)
            if not result.ok:
                self._fail(Operation.UPDATE, result.error)
            record: Record = result.value
            if record.id != record_id:
                self._fail(
                    Operation.UPDATE,
                    RequestError(f"service returned record {record.id!r} for update of {record_id!r}"),
                )
            index = self._index_of(record_id)
            if index is None:
                # Dropped by a load that resolved meanwhile; the next load decides
                logger.info("update_result_not_applied id=%s reason=record no longer listed", record_id)
            else:
                self._records[index] = record
            self._set_state(Operation.UPDATE, RequestState.success())
            return record

    async def remove(self, record_id: str) -> None:
        """Delete a record in the store, then drop it locally."""
        self._ensure_mounted()
        record_id = str(record_id)
        self._require(record_id)
        generation = self._generation
        async with self._serialized(record_id):
            self._check_current(generation, Operation.REMOVE)
            self._require(record_id)
            self._set_state(Operation.REMOVE, RequestState.loading())
            result = await self._client.delete_record(record_id)
            self._check_current(generation, Operation.REMOVE)
            if not result.ok:
                self._fail(Operation.REMOVE, result.error)
            index = self._index_of(record_id)
            if index is not None:
                del self._records[index]
            logger.debug("record_removed id=%s", record_id)
            self._set_state(Operation.REMOVE, RequestState.success())

    # -------------------- internals --------------------

    async def _load(self, generation: int) -> Tuple[Record, ...]:
        self._set_state(Operation.LOAD, RequestState.loading())
        result = await self._client.list_records()
        self._check_current(generation, Operation.LOAD)
        if not result.ok:
            self._fail(Operation.LOAD, result.error)
        self._records = list(result.value)
        logger.debug("records_loaded count=%d", len(self._records))
        self._set_state(Operation.LOAD, RequestState.success())
        return self.snapshot()

    def _on_load_complete(self, task: asyncio.Task) -> None:
        if self._load_task is task:
            self._load_task = None
        # Retrieve the outcome so an unobserved failure is not reported as lost
        if not task.cancelled():
            task.exception()

    @asynccontextmanager
    async def _serialized(self, record_id: str):
        """Run the body after every earlier write on ``record_id`` has finished."""
        previous = self._in_flight.get(record_id)
        marker = asyncio.get_running_loop().create_future()
        self._in_flight[record_id] = marker
        try:
            if previous is not None and not previous.done():
                logger.debug("write_queued id=%s", record_id)
                await asyncio.shield(previous)
            yield
        finally:
            if previous is not None and not previous.done():
                # Cancelled while queued: release followers only once the earlier write ends
                previous.add_done_callback(lambda _f: marker.done() or marker.set_result(None))
                if self._in_flight.get(record_id) is marker:
                    self._in_flight[record_id] = previous
            else:
                if not marker.done():
                    marker.set_result(None)
                if self._in_flight.get(record_id) is marker:
                    del self._in_flight[record_id]

    def _index_of(self, record_id: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def _require(self, record_id: str) -> None:
        if self._index_of(record_id) is None:
            raise NotFoundError(record_id)

    def _ensure_mounted(self) -> None:
        if not self._mounted:
            raise ManagerClosedError()

    def _check_current(self, generation: int, operation: Operation) -> None:
        if generation != self._generation or not self._mounted:
            logger.info("response_discarded operation=%s reason=manager unmounted", operation.value)
            raise ManagerClosedError("record manager was unmounted before the response arrived")

    def _set_state(self, operation: Operation, state: RequestState) -> None:
        self._states[operation] = state
        self._notify()

    def _fail(self, operation: Operation, error: RequestError) -> NoReturn:
        logger.warning("%s_failed reason=%s", operation.value, error)
        self._set_state(operation, RequestState.error(str(error)))
        raise error
