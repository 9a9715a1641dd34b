"""Tests for the ReferenceCache application service."""

import pytest

from stockdesk.application.reference_cache import LOAD_FAILED_MESSAGE, ReferenceCache
from stockdesk.domain.model.reference import Product, Project, Warehouse
from tests.fakes import FakeReferenceRepository, RecordingNotifier


def _repo(**kwargs) -> FakeReferenceRepository:
    return FakeReferenceRepository(
        products=[
            Product(id="P1", name="Widget", sku="WID-1", stock={"W1": 10, "W2": 0}),
            Product(id="P2", name="Gadget", stock={"W2": 4}),
        ],
        warehouses=[Warehouse("W1", "Main"), Warehouse("W2", "Annex")],
        projects=[Project("PR1", "Chantier Nord")],
        **kwargs,
    )


class TestLoadReference:

    @pytest.mark.asyncio
    async def test_load_indexes_by_id(self):
        cache = ReferenceCache(_repo(), RecordingNotifier())

        snapshot = await cache.load_reference()

        assert snapshot.is_loaded
        assert cache.product("P1").name == "Widget"
        assert cache.warehouse("W2").name == "Annex"
        assert cache.project("PR1").name == "Chantier Nord"

    @pytest.mark.asyncio
    async def test_stock_lookup(self):
        cache = ReferenceCache(_repo(), RecordingNotifier())
        await cache.load_reference()

        assert cache.stock_of("P1", "W1") == 10
        assert cache.stock_of("P1", "W2") == 0
        assert cache.stock_of("P2", "W1") == 0
        assert cache.stock_of("unknown", "W1") == 0

    @pytest.mark.asyncio
    async def test_failure_is_not_fatal(self):
        notifier = RecordingNotifier()
        cache = ReferenceCache(_repo(fail=True), notifier)

        snapshot = await cache.load_reference()

        assert not snapshot.is_loaded
        assert cache.stock_of("P1", "W1") == 0
        assert notifier.of("error") == [LOAD_FAILED_MESSAGE]

    @pytest.mark.asyncio
    async def test_reload_replaces_snapshot(self):
        repo = _repo()
        cache = ReferenceCache(repo, RecordingNotifier())
        await cache.load_reference()

        repo.products = [Product(id="P1", name="Widget", stock={"W1": 2})]
        await cache.load_reference()

        assert cache.stock_of("P1", "W1") == 2
        assert cache.product("P2") is None


class TestEnsureProject:

    @pytest.mark.asyncio
    async def test_known_project_is_not_fetched(self):
        repo = _repo()
        cache = ReferenceCache(repo, RecordingNotifier())
        await cache.load_reference()

        assert (await cache.ensure_project("PR1")).name == "Chantier Nord"
        assert repo.project_lookups == []

    @pytest.mark.asyncio
    async def test_inactive_project_is_fetched_and_merged(self):
        repo = _repo(extra_projects=[Project("PR9", "Closed site", status="CLOSED")])
        cache = ReferenceCache(repo, RecordingNotifier())
        await cache.load_reference()

        project = await cache.ensure_project("PR9")

        assert project.status == "CLOSED"
        assert cache.project("PR9") == project

    @pytest.mark.asyncio
    async def test_no_project(self):
        cache = ReferenceCache(_repo(), RecordingNotifier())
        assert await cache.ensure_project(None) is None
