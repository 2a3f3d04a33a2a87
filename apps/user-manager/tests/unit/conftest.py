import asyncio
from typing import Dict, List, Optional

import pytest

from user_manager.manager import ManagerConfig, Record, RecordManager, RequestError, Result


class FakeRecordService:
    """In-memory stand-in for RecordServiceClient.

    ``hold(method)`` makes the next call of that method wait until the
    returned event is set; ``fail(method, error)`` makes the next call fail.
    Every call is recorded in ``calls`` as soon as it is issued.
    """

    base_url = "http://records.test"

    def __init__(self, records: Optional[List[dict]] = None):
        self.store: Dict[str, dict] = {}
        for raw in records or []:
            self.store[raw["id"]] = dict(raw)
        self.calls: List[tuple] = []
        self.is_open = False
        self._gates: Dict[str, asyncio.Event] = {}
        self._failures: Dict[str, RequestError] = {}
        self._next_id = 100

    def hold(self, method: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[method] = gate
        return gate

    def fail(self, method: str, error: RequestError) -> None:
        self._failures[method] = error

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)

    async def open(self) -> None:
        self.is_open = True

    async def aclose(self) -> None:
        self.is_open = False

    async def _enter(self, method: str, *args) -> Optional[RequestError]:
        self.calls.append((method,) + args)
        gate = self._gates.pop(method, None)
        if gate is not None:
            await gate.wait()
        return self._failures.pop(method, None)

    async def list_records(self):
        error = await self._enter("list")
        if error:
            return Result.failure(error)
        return Result.success([Record.model_validate(r) for r in self.store.values()])

    async def create_record(self, fields):
        error = await self._enter("create", dict(fields))
        if error:
            return Result.failure(error)
        record_id = str(self._next_id)
        self._next_id += 1
        self.store[record_id] = {"id": record_id, **fields}
        return Result.success(Record.model_validate(self.store[record_id]))

    async def update_record(self, record_id, fields):
        error = await self._enter("update", record_id, dict(fields))
        if error:
            return Result.failure(error)
        if record_id not in self.store:
            return Result.failure(RequestError("Record not found", status_code=404))
        self.store[record_id] = {**self.store[record_id], **fields}
        return Result.success(Record.model_validate(self.store[record_id]))

    async def delete_record(self, record_id):
        error = await self._enter("delete", record_id)
        if error:
            return Result.failure(error)
        if record_id not in self.store:
            return Result.failure(RequestError("Record not found", status_code=404))
        del self.store[record_id]
        return Result.success(None)


async def _settle(rounds: int = 5) -> None:
    """Let pending tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def service():
    return FakeRecordService()


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def make_manager():
    def _make(service: FakeRecordService) -> RecordManager:
        return RecordManager(service, config=ManagerConfig())
    return _make
