# tests/test_inventory_domain/test_domain/test_stock_ledger.py
"""Tests for the StockLedger debit/credit operations."""

from datetime import date

import pytest

from src.common.exceptions.custom_exceptions import (
    CatalogConflictError,
    InsufficientStockError,
    InsufficientTransitStockError,
    UnknownCatalogReferenceError,
    ValidationIncompleteError,
)


def test_debit_on_hand_reduces_stock(ledger, helmet, stock_of) -> None:
    variant = ledger.debit_on_hand("Helmet", "Standard", 3)

    assert variant.on_hand == 7
    assert stock_of("Helmet", "Standard") == (7, 0)


def test_debit_matches_names_case_insensitively(ledger, helmet, stock_of) -> None:
    ledger.debit_on_hand("  helmet ", "STANDARD", 1)

    assert stock_of("Helmet", "Standard") == (9, 0)


def test_debit_more_than_available_is_rejected_without_clamping(ledger, helmet, stock_of) -> None:
    with pytest.raises(InsufficientStockError) as exc_info:
        ledger.debit_on_hand("Helmet", "Standard", 11)

    assert exc_info.value.requested == 11
    assert exc_info.value.available == 10
    assert exc_info.value.product == "Helmet"
    assert exc_info.value.variant == "Standard"
    assert stock_of("Helmet", "Standard") == (10, 0)


@pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
def test_non_positive_or_non_integer_quantities_are_rejected(ledger, helmet, quantity) -> None:
    with pytest.raises(ValidationIncompleteError) as exc_info:
        ledger.debit_on_hand("Helmet", "Standard", quantity)

    assert exc_info.value.missing_field == "quantity"


def test_unknown_product_or_variant_raises(ledger, helmet) -> None:
    with pytest.raises(UnknownCatalogReferenceError) as exc_info:
        ledger.credit_on_hand("Gloves", "M", 1)
    assert exc_info.value.variant is None

    with pytest.raises(UnknownCatalogReferenceError) as exc_info:
        ledger.credit_on_hand("Helmet", "XL", 1)
    assert exc_info.value.variant == "XL"


def test_transit_round_trip_conserves_units(ledger, vest, stock_of) -> None:
    on_hand_before, in_transit_before = stock_of("Reflective Vest", "M")

    ledger.move_to_transit("Reflective Vest", "M", 5)
    assert stock_of("Reflective Vest", "M") == (3, 5)

    ledger.return_from_transit("Reflective Vest", "M", 2)
    on_hand_after, in_transit_after = stock_of("Reflective Vest", "M")

    assert (on_hand_after, in_transit_after) == (5, 3)
    assert on_hand_after + in_transit_after == on_hand_before + in_transit_before


def test_move_to_transit_needs_on_hand(ledger, vest, stock_of) -> None:
    with pytest.raises(InsufficientStockError):
        ledger.move_to_transit("Reflective Vest", "L", 3)

    assert stock_of("Reflective Vest", "L") == (2, 4)


def test_return_from_transit_needs_in_transit(ledger, vest, stock_of) -> None:
    with pytest.raises(InsufficientTransitStockError) as exc_info:
        ledger.return_from_transit("Reflective Vest", "L", 5)

    assert exc_info.value.available == 4
    assert stock_of("Reflective Vest", "L") == (2, 4)


def test_counters_never_go_negative_over_a_sequence(ledger, vest, stock_of) -> None:
    operations = [
        (ledger.debit_on_hand, 4),
        (ledger.move_to_transit, 1),
        (ledger.debit_on_hand, 1),
        (ledger.return_from_transit, 1),
        (ledger.credit_on_hand, 2),
        (ledger.debit_on_hand, 10),
        (ledger.return_from_transit, 3),
    ]
    for operation, quantity in operations:
        try:
            operation("Reflective Vest", "S", quantity)
        except (InsufficientStockError, InsufficientTransitStockError):
            pass
        on_hand, in_transit = stock_of("Reflective Vest", "S")
        assert on_hand >= 0
        assert in_transit >= 0


def test_create_variant_on_existing_product(ledger, vest, stock_of) -> None:
    variant = ledger.create_variant("Reflective Vest", "XL", initial_on_hand=6)

    assert variant.min_stock == 10
    assert stock_of("Reflective Vest", "XL") == (6, 0)


def test_create_variant_rejects_existing_name(ledger, vest) -> None:
    with pytest.raises(CatalogConflictError):
        ledger.create_variant("Reflective Vest", " m ")


def test_create_product_uses_defaults(ledger, inventory_repo, mocker) -> None:
    mocker.patch("src.inventory_domain.domain.services.stock_ledger.today", return_value=date(2025, 6, 1))

    product = ledger.create_product("Ear Plugs", "Único", 30)

    assert product.category == "Generales"
    assert product.min_stock_global == 10
    assert product.price_per_unit == 0.0
    assert product.variants[0].name == "Único"
    assert product.variants[0].on_hand == 30
    assert product.variants[0].min_stock == 10
    assert product.last_purchase_date == date(2025, 6, 1)
    assert inventory_repo.get_product(product.id) is not None


def test_create_product_registers_missing_fallback_category(ledger, inventory_repo, mocker) -> None:
    mocker.patch.object(inventory_repo, "get_categories", return_value=[])
    add_category = mocker.spy(inventory_repo, "add_category")

    ledger.create_product("Ear Plugs", "Único")

    add_category.assert_called_once_with("Generales")


def test_create_product_rejects_duplicate(ledger, helmet) -> None:
    with pytest.raises(CatalogConflictError):
        ledger.create_product("HELMET", "Standard", 1)
