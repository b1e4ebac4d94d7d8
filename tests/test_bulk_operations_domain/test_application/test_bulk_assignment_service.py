# tests/test_bulk_operations_domain/test_application/test_bulk_assignment_service.py
"""Tests for the BulkAssignmentService selection, validation and commit phases."""

from datetime import date

import pytest

from src.common.dtos.ledger_dtos import FailureReason
from src.common.exceptions.custom_exceptions import (
    BulkValidationError,
    DatabaseError,
    UnknownCatalogReferenceError,
    ValidationIncompleteError,
)
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant


def _set_helmet_stock(inventory_repo, on_hand: int) -> None:
    product = next(p for p in inventory_repo.get_all_products() if p.name == "Helmet")
    product.variants[0].on_hand = on_hand
    inventory_repo.save_product(product)


def test_helmet_scenario_end_to_end(bulk_assignment_service, helmet, register, stock_of) -> None:
    plan = bulk_assignment_service.start(["Ana", "Luis"], "Helmet", assignment_date="2025-06-01")
    plan.set_quantity("Ana", 2)
    plan.set_quantity("Luis", 2)

    result = bulk_assignment_service.commit(plan)

    assert stock_of("Helmet", "Standard") == (6, 0)
    assert result.remaining_on_hand == {"Standard": 6}
    records = register.list_records()
    assert len(records) == 2
    assert {r.person_name for r in records} == {"Ana", "Luis"}
    assert all(r.renewal_date is None for r in records)
    assert all(r.assignment_date == date(2025, 6, 1) for r in records)
    assert [r.id for r in records] == result.assignment_ids


def test_single_variant_is_preselected(bulk_assignment_service, helmet) -> None:
    plan = bulk_assignment_service.start(["Ana", "ana ", "Luis"], "helmet")

    assert plan.person_names == ["Ana", "Luis"]
    assert plan.missing_selections() == []
    assert all(line.variant_name == "Standard" and line.quantity == 1 for line in plan.lines)


def test_start_requires_people_and_known_product(bulk_assignment_service, helmet) -> None:
    with pytest.raises(ValidationIncompleteError) as exc_info:
        bulk_assignment_service.start([], "Helmet")
    assert exc_info.value.missing_field == "person_names"

    with pytest.raises(UnknownCatalogReferenceError):
        bulk_assignment_service.start(["Ana"], "Gloves")


@pytest.mark.parametrize("on_hand, should_commit", [(5, False), (6, True)])
def test_demand_is_aggregated_per_variant(
    bulk_assignment_service, inventory_repo, helmet, register, stock_of, on_hand, should_commit
) -> None:
    _set_helmet_stock(inventory_repo, on_hand)
    plan = bulk_assignment_service.start(["Ana", "Luis", "Bea"], "Helmet", assignment_date="2025-06-01")
    for person in plan.person_names:
        plan.set_quantity(person, 2)

    if should_commit:
        bulk_assignment_service.commit(plan)
        assert stock_of("Helmet", "Standard") == (0, 0)
        assert len(register.list_records()) == 3
    else:
        with pytest.raises(BulkValidationError) as exc_info:
            bulk_assignment_service.commit(plan)
        failure = exc_info.value.failures[0]
        assert failure.reason == FailureReason.INSUFFICIENT_STOCK
        assert (failure.requested, failure.available) == (6, 5)
        assert failure.row_indexes == [0, 1, 2]
        assert stock_of("Helmet", "Standard") == (5, 0)
        assert register.list_records() == []


def test_one_overdrawn_variant_blocks_the_whole_submission(
    bulk_assignment_service, vest, register, stock_of
) -> None:
    plan = bulk_assignment_service.start(["Ana", "Luis", "Bea"], "Reflective Vest", assignment_date="2025-06-01")
    plan.set_variant("Ana", "S")
    plan.set_variant("Luis", "M")
    plan.set_variant("Bea", "L")
    plan.set_quantity("Bea", 3)

    with pytest.raises(BulkValidationError):
        bulk_assignment_service.commit(plan)

    assert stock_of("Reflective Vest", "S") == (5, 0)
    assert stock_of("Reflective Vest", "M") == (8, 0)
    assert stock_of("Reflective Vest", "L") == (2, 4)
    assert register.list_records() == []


def test_validation_reports_every_problem_at_once(bulk_assignment_service, vest) -> None:
    plan = bulk_assignment_service.start(["Ana", "Luis", "Bea", "Eva"], "Reflective Vest")
    plan.set_variant("Luis", "XXL")
    plan.set_variant("Bea", "M")
    plan.set_quantity("Bea", 0)
    plan.set_variant("Eva", "S")
    plan.set_renewal("Eva", -1)
    plan.set_assignment_date(None)

    report = bulk_assignment_service.validate(plan)

    reasons = {(f.reason, f.missing_field, tuple(f.row_indexes)) for f in report.failures}
    assert (FailureReason.VALIDATION_INCOMPLETE, "variant_name", (0,)) in reasons
    assert (FailureReason.UNKNOWN_CATALOG_REFERENCE, None, (1,)) in reasons
    assert (FailureReason.VALIDATION_INCOMPLETE, "quantity", (2,)) in reasons
    assert (FailureReason.VALIDATION_INCOMPLETE, "renewal_months", (3,)) in reasons
    assert (FailureReason.VALIDATION_INCOMPLETE, "assignment_date", (0, 1, 2, 3)) in reasons
    assert len(report.failures_for_row(2)) == 2


def test_validation_is_repeatable_and_side_effect_free(bulk_assignment_service, vest, register, stock_of) -> None:
    plan = bulk_assignment_service.start(["Ana", "Luis"], "Reflective Vest", assignment_date="2025-06-01")
    plan.set_variant("Ana", "L")
    plan.set_variant("Luis", "L")
    plan.set_quantity("Luis", 2)

    first = bulk_assignment_service.validate(plan)
    second = bulk_assignment_service.validate(plan)

    assert first.is_valid is False
    assert first == second
    assert stock_of("Reflective Vest", "L") == (2, 4)
    assert register.list_records() == []


def test_commit_attaches_directory_ids_and_renewals(bulk_assignment_service, directory, helmet, register) -> None:
    ana = directory.add_employee("Ana Martínez")
    plan = bulk_assignment_service.start(["ana martínez", "Visitor"], "Helmet", assignment_date="2025-01-31")
    plan.set_renewal("Ana Martínez", 12)

    bulk_assignment_service.commit(plan)

    by_person = {r.person_name: r for r in register.list_records()}
    assert by_person["Ana Martínez"].employee_id == ana.id
    assert by_person["Ana Martínez"].renewal_date == date(2026, 1, 31)
    assert by_person["Visitor"].employee_id is None
    assert by_person["Visitor"].product_id == helmet.id


def test_employee_rename_follows_bulk_records_typed_in_another_case(
    bulk_assignment_service, directory, helmet, register
) -> None:
    ana = directory.add_employee("Ana Perez")
    plan = bulk_assignment_service.start(["ana perez"], "Helmet", assignment_date="2025-06-01")
    bulk_assignment_service.commit(plan)

    assert [(r.person_name, r.employee_id) for r in register.list_records()] == [("Ana Perez", ana.id)]
    assert len(directory.assignments_for(ana.id)) == 1

    directory.update_employee(ana.id, name="Ana Gomez")

    assert [r.person_name for r in register.list_records()] == ["Ana Gomez"]
    assert len(directory.assignments_for(ana.id)) == 1


def test_commit_restores_stock_when_the_register_write_fails(
    bulk_assignment_service, register, vest, stock_of, mocker
) -> None:
    plan = bulk_assignment_service.start(["Ana", "Luis"], "Reflective Vest", assignment_date="2025-06-01")
    plan.set_variant("Ana", "S")
    plan.set_variant("Luis", "M")
    mocker.patch.object(register, "record_many", side_effect=DatabaseError("disk full"))

    with pytest.raises(DatabaseError):
        bulk_assignment_service.commit(plan)

    assert stock_of("Reflective Vest", "S") == (5, 0)
    assert stock_of("Reflective Vest", "M") == (8, 0)


def test_plan_rejects_people_outside_the_selection(bulk_assignment_service, inventory_repo) -> None:
    inventory_repo.save_product(
        Product(name="Gloves", category="Generales", variants=[Variant(name="S", on_hand=1), Variant(name="M")])
    )
    plan = bulk_assignment_service.start(["Ana"], "Gloves")

    assert plan.missing_selections() == ["Ana"]
    with pytest.raises(ValueError):
        plan.set_variant("Luis", "S")


def test_renewal_past_the_last_representable_date_is_a_validation_failure(
    bulk_assignment_service, helmet, register, stock_of
) -> None:
    plan = bulk_assignment_service.start(["Ana"], "Helmet", assignment_date="2025-06-01")
    plan.set_renewal("Ana", 120000)

    report = bulk_assignment_service.validate(plan)

    assert report.is_valid is False
    assert [(f.reason, f.missing_field) for f in report.failures] == [
        (FailureReason.VALIDATION_INCOMPLETE, "renewal_months")
    ]
    with pytest.raises(BulkValidationError):
        bulk_assignment_service.commit(plan)
    assert stock_of("Helmet", "Standard") == (10, 0)
    assert register.list_records() == []
