"""Tests for per-request catalog dependencies."""

import pytest

from pharmreturns.api import deps
from pharmreturns.api.deps import get_catalog
from pharmreturns.services.catalog import DatabaseCatalog, InMemoryCatalog


class RecordingSession:
    """Stands in for an AsyncSession and records how it is released."""

    def __init__(self, events: list[str]):
        self.events = events

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.events.append("closed")
        return False

    async def rollback(self):
        self.events.append("rollback")


@pytest.fixture
def session_events(monkeypatch) -> list[str]:
    events: list[str] = []
    monkeypatch.setattr(deps.settings, "catalog_backend", "database")
    monkeypatch.setattr(deps, "async_session", lambda: RecordingSession(events))
    return events


@pytest.mark.asyncio
class TestGetCatalog:
    async def test_memory_backend_is_shared(self, monkeypatch):
        monkeypatch.setattr(deps.settings, "catalog_backend", "memory")
        first_gen, second_gen = get_catalog(), get_catalog()
        first = await first_gen.__anext__()
        second = await second_gen.__anext__()
        await first_gen.aclose()
        await second_gen.aclose()
        assert isinstance(first, InMemoryCatalog)
        assert first is second

    async def test_database_session_closed_after_request(self, session_events):
        gen = get_catalog()
        catalog = await gen.__anext__()
        assert isinstance(catalog, DatabaseCatalog)

        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()
        assert session_events == ["closed"]

    async def test_handler_error_rolls_back_and_closes(self, session_events):
        gen = get_catalog()
        await gen.__anext__()

        with pytest.raises(RuntimeError, match="handler failed"):
            await gen.athrow(RuntimeError("handler failed"))
        assert session_events == ["rollback", "closed"]
