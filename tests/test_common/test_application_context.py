# tests/test_common/test_application_context.py

import json

import pytest

from src.common.application_context import build_application_context
from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import ApplicationError


def test_memory_context_is_seeded_from_reference_data(tmp_path) -> None:
    context = build_application_context(backend="memory", drafts_dir=str(tmp_path))

    helmet = context.catalog.get_product("casco blanco")
    assert helmet.variants[0].name == "Ajustable"
    assert helmet.total_on_hand() == 45
    assert len(context.catalog.get_product("PANTALÓN SEGURIDAD REFLECTANTE").variants) == 5
    assert "Generales" in context.catalog.list_categories()
    assert context.directory.find_by_name("juan pérez") is not None
    assert context.register.count_for_person("Juan Pérez") == 3
    context.close()


def test_services_share_one_lock_manager(tmp_path) -> None:
    context = build_application_context(backend="memory", seed=False, drafts_dir=str(tmp_path))

    assert context.ledger.lock_manager is context.lock_manager
    assert context.register.lock_manager is context.lock_manager
    assert context.bulk_assignments.lock_manager is context.lock_manager
    assert context.bulk_stock.lock_manager is context.lock_manager
    assert context.catalog.list_products() == []


def test_seeded_context_runs_a_bulk_assignment(tmp_path) -> None:
    context = build_application_context(backend="memory", drafts_dir=str(tmp_path))
    plan = context.bulk_assignments.start(["Juan Pérez", "Pedro Silva"], "CASCO BLANCO", "2025-12-01")

    context.bulk_assignments.commit(plan)

    assert context.catalog.get_variant("CASCO BLANCO", "Ajustable").on_hand == 43
    assert context.register.list_records(person_name="Pedro Silva")[-1].employee_id is not None


def test_custom_seed_file(tmp_path, mocker) -> None:
    seed_path = tmp_path / "seed.json"
    seed_path.write_text(
        json.dumps({"products": [{"name": "Ear Plugs", "variants": [{"name": "Único", "on_hand": 3}]}]}),
        encoding="utf-8",
    )
    mocker.patch.object(settings, "SEED_DATA_PATH", str(seed_path))

    context = build_application_context(backend="memory", drafts_dir=str(tmp_path))

    assert context.catalog.get_product("Ear Plugs").category == "Generales"


def test_unreadable_seed_file_raises(tmp_path, mocker) -> None:
    mocker.patch.object(settings, "SEED_DATA_PATH", str(tmp_path / "missing.json"))

    with pytest.raises(ApplicationError):
        build_application_context(backend="memory")


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ApplicationError):
        build_application_context(backend="sqlite")


def test_mysql_backend_creates_tables(mocker, tmp_path) -> None:
    connect = mocker.patch("mysql.connector.connect")
    connect.return_value.cursor.return_value.fetchall.return_value = []

    context = build_application_context(backend="mysql", seed=False, drafts_dir=str(tmp_path))

    executed = " ".join(call.args[0] for call in connect.return_value.cursor.return_value.execute.call_args_list)
    for table in ("inv_products", "inv_assignments", "inv_employees"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in executed
    assert context.catalog.list_products() == []


def test_drafts_backend_is_selectable(tmp_path) -> None:
    in_memory = build_application_context(backend="memory", seed=False, drafts_backend="memory")
    on_disk = build_application_context(backend="memory", seed=False, drafts_dir=str(tmp_path))

    in_memory.bulk_stock.save_draft("entry-form", "entry", [{"product_name": "Helmet", "quantity": 1}])
    on_disk.bulk_stock.save_draft("entry-form", "entry", [{"product_name": "Helmet", "quantity": 1}])

    assert in_memory.draft_repo.list_names() == ["entry-form"]
    assert list(tmp_path.glob("*.json")) == [tmp_path / "entry-form.json"]
    with pytest.raises(ApplicationError):
        build_application_context(backend="memory", seed=False, drafts_backend="redis")
