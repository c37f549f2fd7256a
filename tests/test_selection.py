"""
Unit tests for the admin table selection view-model.
"""

from decimal import Decimal

import pytest

from models.catalog import Product, Variant, Weight
from models.price_update import PriceUpdateBatchResult, ProductUpdateOutcome
from models.selection import (
    MODE_COLLECTION,
    MODE_PAGE,
    SelectionState,
    apply_update_result,
    filter_products,
    go_to_page,
    load_products,
    scope_ids,
    search_products,
    select_all,
    selected_products,
    set_collection,
    set_mode,
    set_search_query,
    set_status_filter,
    toggle_product,
)


# Fixtures

def make_product(index, status="active", weighted=True):
    weight = Weight(Decimal("1"), "GRAMS") if weighted else None
    return Product(
        id=f"p{index}",
        title=f"Product {index}",
        handle=f"product-{index}",
        status=status,
        variants=(Variant(id=f"v{index}", price="1.00", weight=weight),),
    )


@pytest.fixture
def state():
    """Five products, two per page; p3 is a draft, p4 has no weight."""
    products = [
        make_product(0),
        make_product(1),
        make_product(2),
        make_product(3, status="draft"),
        make_product(4, weighted=False),
    ]
    return load_products(SelectionState(collection_id="c1", page_size=2), products)


class TestFiltering:
    """Test status filter, search and pagination."""

    def test_empty_filter_keeps_everything(self, state):
        assert len(filter_products(state.products, [])) == 5

    def test_filter_is_idempotent(self, state):
        once = filter_products(state.products, {"draft"})
        assert filter_products(once, {"draft"}) == once
        assert [p.id for p in once] == ["p3"]

    def test_search_matches_title_or_handle(self, state):
        assert [p.id for p in search_products(state.products, "PRODUCT 1")] == ["p1"]
        assert [p.id for p in search_products(state.products, "product-2")] == ["p2"]
        assert len(search_products(state.products, "  ")) == 5

    def test_pagination(self, state):
        assert state.total_pages == 3
        assert [p.id for p in state.visible] == ["p0", "p1"]
        assert [p.id for p in go_to_page(state, 3).visible] == ["p4"]

    def test_go_to_page_is_clamped(self, state):
        assert go_to_page(state, 99).current_page == 3
        assert go_to_page(state, 0).current_page == 1

    def test_status_filter_returns_to_first_page(self, state):
        state = set_status_filter(go_to_page(state, 2), ["active", "bogus"])
        assert state.current_page == 1
        assert state.status_filter == frozenset({"active"})
        assert len(state.filtered) == 4


class TestSelection:
    """Test toggle and select-all semantics."""

    def test_toggle(self, state):
        state = toggle_product(state, "p0", True)
        assert state.selected_ids == {"p0"}
        state = toggle_product(state, "p0", False)
        assert state.selected_ids == frozenset()

    def test_product_without_weight_cannot_be_selected(self, state):
        assert toggle_product(state, "p4", True).selected_ids == frozenset()

    def test_page_mode_only_touches_visible_page(self, state):
        state = toggle_product(go_to_page(state, 2), "p2", True)
        state = go_to_page(state, 1)

        state = select_all(state, True)
        assert state.selected_ids == {"p0", "p1", "p2"}

        state = select_all(state, False)
        assert state.selected_ids == {"p2"}

    def test_collection_mode_uses_filtered_set(self, state):
        state = set_mode(set_status_filter(state, ["active"]), MODE_COLLECTION)
        state = select_all(state, True)
        assert state.selected_ids == {"p0", "p1", "p2", "p4"}

        state = select_all(state, False)
        assert state.selected_ids == frozenset()

    def test_mode_switch_recomputes_indicator(self, state):
        state = select_all(state, True)
        assert state.select_all is True

        state = set_mode(state, MODE_COLLECTION)
        assert state.selected_ids == {"p0", "p1"}
        assert state.select_all is False

        state = set_mode(state, MODE_PAGE)
        assert state.select_all is True

    def test_scope_defaults_to_current_mode(self, state):
        assert scope_ids(state) == {"p0", "p1"}
        assert scope_ids(set_mode(state, MODE_COLLECTION)) == {"p0", "p1", "p2", "p3", "p4"}
        assert scope_ids(state, MODE_COLLECTION) == scope_ids(set_mode(state, MODE_COLLECTION))

    def test_unknown_mode(self, state):
        with pytest.raises(ValueError):
            set_mode(state, "everything")

    def test_selected_products_respect_filter(self, state):
        state = toggle_product(state, "p0", True)
        state = toggle_product(state, "p3", True)
        assert [p.id for p in selected_products(state)] == ["p0", "p3"]

        state = set_status_filter(state, ["draft"])
        assert [p.id for p in selected_products(state)] == ["p3"]


class TestResets:
    """Test reducers that invalidate the selection."""

    def test_collection_change_resets_selection(self, state):
        state = set_search_query(toggle_product(state, "p0", True), "ring")
        assert state.selected_ids == frozenset()

        state = toggle_product(load_products(state, [make_product(0)]), "p0", True)
        state = set_collection(go_to_page(state, 1), "c2")

        assert state.collection_id == "c2"
        assert state.search_query == "ring"
        assert state.selected_ids == frozenset()
        assert state.products == ()
        assert state.current_page == 1

    def test_load_products_resets_selection(self, state):
        state = load_products(toggle_product(state, "p0", True), state.products)
        assert state.selected_ids == frozenset()


class TestUpdateResult:
    """Test the banner message after an update."""

    def test_success_message_and_refresh(self, state):
        result = PriceUpdateBatchResult.from_outcomes([
            ProductUpdateOutcome.success("A", 2),
            ProductUpdateOutcome.success("B", 1),
        ])
        message, refresh = apply_update_result(state, result)

        assert message == "Successfully updated 3 variants across 2 products."
        assert refresh is True

    def test_errors_with_partial_success_still_refresh(self, state):
        result = PriceUpdateBatchResult.from_outcomes([
            ProductUpdateOutcome.success("A", 1),
            ProductUpdateOutcome.failure("B", "msg"),
        ])
        message, refresh = apply_update_result(state, result)

        assert message == "Errors occurred: B: msg"
        assert refresh is True

    def test_nothing_to_update(self, state):
        message, refresh = apply_update_result(state, PriceUpdateBatchResult(skipped=2))
        assert message == "No selected products have a weight to price from."
        assert refresh is False
