"""Tests for the CartBuilder application service."""

from datetime import datetime, timezone

import pytest

from stockdesk.application.cart_builder import CartBuilder
from stockdesk.application.reference_cache import ReferenceCache
from stockdesk.domain.exceptions import InsufficientStockError, ValidationError
from stockdesk.domain.model.reference import Product, Warehouse
from tests.fakes import FakeReferenceRepository, InMemoryCartRepository, RecordingNotifier


async def _setup(cart_repo: InMemoryCartRepository | None = None):
    reference = ReferenceCache(
        FakeReferenceRepository(
            products=[
                Product(id="P1", name="Widget", sku="WID-1", stock={"W1": 10, "W2": 3}),
                Product(id="P2", name="Gadget", stock={"W1": 1}),
            ],
            warehouses=[Warehouse("W1", "Main"), Warehouse("W2", "Annex")],
        ),
        RecordingNotifier(),
    )
    await reference.load_reference()
    cart_repo = cart_repo or InMemoryCartRepository()
    return CartBuilder(cart_repo, reference), cart_repo


class TestAddLine:

    @pytest.mark.asyncio
    async def test_scenario_merge_then_reject(self):
        builder, _ = await _setup()

        builder.add_line("P1", "W1", 5)
        assert builder.count == 1
        assert builder.lines[0].quantity == 5

        builder.add_line("P1", "W1", 4)
        assert builder.count == 1
        assert builder.lines[0].quantity == 9

        with pytest.raises(InsufficientStockError, match="Disponible: 10"):
            builder.add_line("P1", "W1", 5)
        assert builder.count == 1
        assert builder.lines[0].quantity == 9

    @pytest.mark.asyncio
    async def test_resolves_names_and_ceiling(self):
        builder, _ = await _setup()

        line = builder.add_line("P1", "W2", 2)

        assert line.product_name == "Widget"
        assert line.product_sku == "WID-1"
        assert line.warehouse_name == "Annex"
        assert line.available_stock == 3

    @pytest.mark.asyncio
    async def test_zero_quantity_rejected(self):
        builder, cart_repo = await _setup()
        with pytest.raises(ValidationError):
            builder.add_line("P1", "W1", 0)
        assert builder.is_empty
        assert cart_repo.saves == 0

    @pytest.mark.asyncio
    async def test_missing_selection_rejected(self):
        builder, _ = await _setup()
        with pytest.raises(ValidationError, match="champs requis"):
            builder.add_line("P1", "", 1)

    @pytest.mark.asyncio
    async def test_unknown_product_rejected(self):
        builder, _ = await _setup()
        with pytest.raises(ValidationError, match="Produit introuvable"):
            builder.add_line("P404", "W1", 1)

    @pytest.mark.asyncio
    async def test_unknown_warehouse_rejected(self):
        builder, _ = await _setup()
        with pytest.raises(ValidationError, match="Entrepôt introuvable"):
            builder.add_line("P1", "W404", 1)

    @pytest.mark.asyncio
    async def test_no_stock_in_warehouse_rejected(self):
        builder, _ = await _setup()
        with pytest.raises(InsufficientStockError, match="Disponible: 0"):
            builder.add_line("P2", "W2", 1)

    @pytest.mark.asyncio
    async def test_add_resets_selection_but_keeps_shared_fields(self):
        builder, _ = await _setup()
        expiry = datetime(2026, 12, 1, tzinfo=timezone.utc)
        builder.set_shared_fields(project_id="PR1", expires_at=expiry, notes="urgent")
        builder.select("P1", "W1", 3)

        builder.add_draft_line()

        draft = builder.draft
        assert (draft.product_id, draft.warehouse_id, draft.quantity) == (None, None, 1)
        assert (draft.project_id, draft.expires_at, draft.notes) == ("PR1", expiry, "urgent")

    @pytest.mark.asyncio
    async def test_failed_add_keeps_selection(self):
        builder, _ = await _setup()
        builder.select("P1", "W1", 50)

        with pytest.raises(InsufficientStockError):
            builder.add_draft_line()

        assert builder.draft.product_id == "P1"
        assert builder.draft.quantity == 50


class TestUpdateQuantity:

    @pytest.mark.asyncio
    async def test_increment_and_decrement(self):
        builder, _ = await _setup()
        builder.add_line("P1", "W1", 5)

        assert builder.update_quantity(0, 1).quantity == 6
        assert builder.update_quantity(0, -5).quantity == 1

    @pytest.mark.asyncio
    async def test_below_one_leaves_line_unchanged(self):
        builder, _ = await _setup()
        builder.add_line("P1", "W1", 1)

        with pytest.raises(InsufficientStockError):
            builder.update_quantity(0, -1)
        assert builder.lines[0].quantity == 1

    @pytest.mark.asyncio
    async def test_above_ceiling_leaves_line_unchanged(self):
        builder, _ = await _setup()
        builder.add_line("P1", "W2", 3)

        with pytest.raises(InsufficientStockError):
            builder.update_quantity(0, 1)
        assert builder.lines[0].quantity == 3

    @pytest.mark.asyncio
    async def test_set_quantity(self):
        builder, _ = await _setup()
        builder.add_line("P1", "W1", 1)
        assert builder.set_quantity(0, 7).quantity == 7


class TestRemoveAndClear:

    @pytest.mark.asyncio
    async def test_remove_line(self):
        builder, _ = await _setup()
        builder.add_line("P1", "W1", 1)
        builder.add_line("P1", "W2", 1)

        builder.remove_line(0)

        assert [line.warehouse_id for line in builder.lines] == ["W2"]

    @pytest.mark.asyncio
    async def test_clear_empties_storage(self):
        builder, cart_repo = await _setup()
        builder.add_line("P1", "W1", 1)
        assert cart_repo.stored is not None

        builder.clear()

        assert builder.is_empty
        assert cart_repo.stored is None


class TestPersistence:

    @pytest.mark.asyncio
    async def test_cart_survives_a_new_builder(self):
        builder, cart_repo = await _setup()
        builder.add_line("P1", "W1", 4)

        reopened, _ = await _setup(cart_repo)

        assert reopened.count == 1
        assert reopened.lines[0].quantity == 4

    @pytest.mark.asyncio
    async def test_every_mutation_is_saved(self):
        builder, cart_repo = await _setup()
        builder.add_line("P1", "W1", 4)
        builder.update_quantity(0, 1)

        assert cart_repo.stored.lines[0].quantity == 5
