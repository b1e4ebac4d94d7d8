# tests/test_assignment_domain/test_application/test_employee_directory_service.py

import pytest

from src.common.exceptions.custom_exceptions import CatalogConflictError, RecordNotFoundError, ValidationIncompleteError


def test_add_and_find_employee(directory) -> None:
    employee = directory.add_employee("  María   González ", role="Supervisora", department="Planta")

    assert employee.name == "María González"
    assert directory.find_by_name("maría gonzález").id == employee.id
    assert directory.get_employee(employee.id).role == "Supervisora"


def test_add_employee_rejects_blank_and_duplicate_names(directory) -> None:
    directory.add_employee("Pedro Silva")

    with pytest.raises(ValidationIncompleteError):
        directory.add_employee("   ")
    with pytest.raises(CatalogConflictError):
        directory.add_employee("PEDRO SILVA")


def test_renaming_employee_rewrites_their_assignments_only(directory, register) -> None:
    juan = directory.add_employee("Juan Pérez")
    directory.add_employee("Ana Martínez")
    for product in ("Helmet", "Boots", "Goggles"):
        register.record_assignment("Juan Pérez", product, "Único", 1, "2025-06-01")
    register.record_assignment("Ana Martínez", "Helmet", "Único", 1, "2025-06-01")

    directory.update_employee(juan.id, name="Juan Pablo Pérez", role="Jefe de turno")

    assert register.count_for_person("Juan Pablo Pérez") == 3
    assert register.count_for_person("Juan Pérez") == 0
    assert register.count_for_person("Ana Martínez") == 1
    assert directory.get_employee(juan.id).role == "Jefe de turno"


def test_update_employee_without_name_change_leaves_register_alone(directory, register, mocker) -> None:
    ana = directory.add_employee("Ana Martínez")
    rename_actor = mocker.spy(register, "rename_actor")

    directory.update_employee(ana.id, email="ana@example.com")

    rename_actor.assert_not_called()
    assert directory.get_employee(ana.id).email == "ana@example.com"


def test_update_employee_rejects_unknown_fields_and_name_clash(directory) -> None:
    ana = directory.add_employee("Ana Martínez")
    directory.add_employee("Pedro Silva")

    with pytest.raises(ValueError):
        directory.update_employee(ana.id, salary=1)
    with pytest.raises(CatalogConflictError):
        directory.update_employee(ana.id, name="pedro silva")


def test_delete_employee_keeps_history(directory, register) -> None:
    pedro = directory.add_employee("Pedro Silva")
    register.record_assignment("Pedro Silva", "Helmet", "Standard", 1, "2025-06-01")

    directory.delete_employee(pedro.id)

    assert register.count_for_person("Pedro Silva") == 1
    with pytest.raises(RecordNotFoundError):
        directory.get_employee(pedro.id)


def test_list_employees_searches_name_and_role(directory) -> None:
    directory.add_employee("Pedro Silva", role="Operador")
    directory.add_employee("Ana Martínez", role="Laboratorista")
    directory.add_employee("Carlos Rodríguez", role="Técnico en altura")

    assert [e.name for e in directory.list_employees()] == ["Ana Martínez", "Carlos Rodríguez", "Pedro Silva"]
    assert [e.name for e in directory.list_employees(search="opera")] == ["Pedro Silva"]
    assert [e.name for e in directory.list_employees(search="ANA")] == ["Ana Martínez"]


def test_assignments_for_employee(directory, register) -> None:
    ana = directory.add_employee("Ana Martínez")
    register.record_assignment("Ana Martínez", "Helmet", "Standard", 1, "2025-06-01")
    register.record_exit("Helmet", "Standard", 1, "2025-06-01")

    records = directory.assignments_for(ana.id)

    assert [r.product_name for r in records] == ["Helmet"]
