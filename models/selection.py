"""
Selection and pagination state for the admin product table.

SelectionState is an immutable view-model; every user interaction is a
pure function ``(state, ...) -> state``. Nothing here touches Flask or
Shopify, so the rules can be tested on their own:

    - status filtering happens before pagination
    - "select all" in page mode only touches the visible page
    - "select all" in collection mode covers the whole filtered set
    - switching collection or search query resets the selection

Usage:
    state = SelectionState(collection_id=collection_id, page_size=50)
    state = load_products(state, products)
    state = set_status_filter(state, {"active"})
    state = select_all(state, True)
    payload = selected_products(state)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .catalog import PRODUCT_STATUSES, Product
from .price_update import PriceUpdateBatchResult


MODE_PAGE = "page"
MODE_COLLECTION = "collection"
SELECT_MODES = (MODE_PAGE, MODE_COLLECTION)

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class SelectionState:
    """View-model for the product table."""

    products: Tuple[Product, ...] = field(default_factory=tuple)
    selected_ids: FrozenSet[str] = field(default_factory=frozenset)
    mode: str = MODE_PAGE
    status_filter: FrozenSet[str] = field(default_factory=frozenset)
    current_page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    collection_id: str = ""
    search_query: str = ""
    select_all: bool = False

    @property
    def filtered(self) -> List[Product]:
        return filter_products(self.products, self.status_filter)

    @property
    def visible(self) -> List[Product]:
        return visible_products(self)

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.filtered), self.page_size)

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1


# =============================================================================
# DERIVED VIEWS
# =============================================================================

def filter_products(products: Iterable[Product], status_filter: Iterable[str]) -> List[Product]:
    """Keep products whose status is in the filter; an empty filter keeps all."""
    statuses = {s.lower() for s in status_filter}
    products = list(products)
    if not statuses:
        return products
    return [p for p in products if p.status.lower() in statuses]


def search_products(products: Iterable[Product], query: str) -> List[Product]:
    """Case-insensitive substring match on title or handle."""
    needle = (query or "").strip().lower()
    products = list(products)
    if not needle:
        return products
    return [p for p in products if needle in p.title.lower() or needle in p.handle.lower()]


def total_pages(item_count: int, page_size: int) -> int:
    return math.ceil(item_count / page_size) if page_size > 0 else 0


def paginate(items: Sequence[Product], page: int, page_size: int) -> List[Product]:
    start = (max(page, 1) - 1) * page_size
    return list(items[start:start + page_size])


def visible_products(state: SelectionState) -> List[Product]:
    return paginate(state.filtered, state.current_page, state.page_size)


def scope_ids(state: SelectionState, mode: Optional[str] = None) -> FrozenSet[str]:
    """Ids covered by "select all" in the given (or current) mode."""
    mode = mode or state.mode
    products = visible_products(state) if mode == MODE_PAGE else state.filtered
    return frozenset(p.id for p in products)


def is_all_selected(state: SelectionState) -> bool:
    """Recompute the select-all indicator against the current scope."""
    scope = scope_ids(state)
    return bool(scope) and scope <= state.selected_ids


def selected_products(state: SelectionState) -> List[Product]:
    """Filtered products that are selected, in table order."""
    return [p for p in state.filtered if p.id in state.selected_ids]


# =============================================================================
# REDUCERS
# =============================================================================

def load_products(state: SelectionState, products: Iterable[Product]) -> SelectionState:
    """Replace the product list after a fetch; selection starts empty."""
    return replace(
        state,
        products=tuple(products),
        selected_ids=frozenset(),
        current_page=1,
        select_all=False,
    )


def set_collection(state: SelectionState, collection_id: str) -> SelectionState:
    """Switch collection; products are cleared until the next fetch."""
    return replace(
        state,
        collection_id=collection_id,
        products=(),
        selected_ids=frozenset(),
        current_page=1,
        select_all=False,
    )


def set_search_query(state: SelectionState, query: str) -> SelectionState:
    """Change the search query; invalidates the selection like a collection switch."""
    return replace(
        state,
        search_query=query,
        products=(),
        selected_ids=frozenset(),
        current_page=1,
        select_all=False,
    )


def toggle_product(state: SelectionState, product_id: str, checked: bool) -> SelectionState:
    """Select or deselect one product. Products without weight can't be selected."""
    product = next((p for p in state.products if p.id == product_id), None)
    if product is None or (checked and not product.has_weight):
        return state

    selected = set(state.selected_ids)
    if checked:
        selected.add(product_id)
    else:
        selected.discard(product_id)

    new_state = replace(state, selected_ids=frozenset(selected))
    return replace(new_state, select_all=is_all_selected(new_state))


def select_all(state: SelectionState, checked: bool) -> SelectionState:
    """
    Apply the "Select All" checkbox.

    Page mode adds/removes only the visible page's ids, leaving selections
    on other pages alone. Collection mode sets/clears the filtered set.
    """
    if state.mode == MODE_PAGE:
        page_ids = scope_ids(state, MODE_PAGE)
        selected = state.selected_ids | page_ids if checked else state.selected_ids - page_ids
    else:
        selected = scope_ids(state, MODE_COLLECTION) if checked else frozenset()

    return replace(state, selected_ids=frozenset(selected), select_all=checked)


def set_mode(state: SelectionState, mode: str) -> SelectionState:
    """Switch between page and collection scope; the indicator is recomputed."""
    if mode not in SELECT_MODES:
        raise ValueError(f"Unknown selection mode: {mode}")
    new_state = replace(state, mode=mode)
    return replace(new_state, select_all=is_all_selected(new_state))


def set_status_filter(state: SelectionState, statuses: Iterable[str]) -> SelectionState:
    """Apply a status filter; unknown statuses are ignored. Returns to page 1."""
    status_filter = frozenset(s.lower() for s in statuses if s and s.lower() in PRODUCT_STATUSES)
    new_state = replace(state, status_filter=status_filter, current_page=1)
    return replace(new_state, select_all=is_all_selected(new_state))


def go_to_page(state: SelectionState, page: int) -> SelectionState:
    """Move to a page, clamped to [1, total_pages]."""
    page = min(max(page, 1), max(state.total_pages, 1))
    new_state = replace(state, current_page=page)
    return replace(new_state, select_all=is_all_selected(new_state))


def apply_update_result(state: SelectionState, result: PriceUpdateBatchResult) -> Tuple[str, bool]:
    """
    Turn a batch result into the banner message.

    Returns:
        (message, needs_refresh) - the product list is refetched whenever
        at least one product was updated, even if others failed
    """
    message = ""
    if result.results:
        message = (
            f"Successfully updated {result.variants_updated} variants "
            f"across {len(result.results)} products."
        )
    if result.errors:
        message = f"Errors occurred: {'; '.join(result.errors)}"
    if not result.results and not result.errors:
        message = "No selected products have a weight to price from."
    return message, result.has_successes and bool(state.collection_id)
