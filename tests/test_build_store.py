import pytest
from pydantic import ValidationError

from rigsmith.builder.store import BuildStore, compute_totals
from rigsmith.schemas import BuildUpdate

from conftest import make_part


def assert_totals_match(store: BuildStore):
    build = store.build
    assert build.total_price == sum(p.price for p in build.parts.values())
    assert build.total_wattage == sum(p.specs.wattage or 0 for p in build.parts.values())


def test_new_store_is_empty_gaming_build():
    store = BuildStore()
    assert store.build.parts == {}
    assert store.build.type == "Gaming"
    assert store.build.total_price == 0
    assert store.build.total_wattage == 0
    assert store.compatibility_issues == []


def test_totals_follow_select_and_remove_sequence():
    store = BuildStore()
    cpu = make_part("cpu", "CPU", price=200, wattage=65)
    gpu = make_part("gpu", "GPU", price=600, wattage=220)
    case = make_part("case", "Case", price=90)
    bigger_cpu = make_part("cpu2", "CPU", price=550, wattage=170)

    for step in (
        lambda: store.select_part(cpu),
        lambda: store.select_part(gpu),
        lambda: store.select_part(case),
        lambda: store.select_part(bigger_cpu),
        lambda: store.remove_part("GPU"),
        lambda: store.remove_part("GPU"),
        lambda: store.remove_part("Monitor"),
        lambda: store.select_part(gpu),
    ):
        step()
        assert_totals_match(store)

    assert store.build.total_price == 550 + 90 + 600
    assert store.build.total_wattage == 170 + 220
    assert store.build.parts["CPU"] is bigger_cpu


def test_selecting_same_category_replaces_slot():
    store = BuildStore()
    store.select_part(make_part("a", "RAM", price=50, wattage=5))
    store.select_part(make_part("b", "RAM", price=80, wattage=8))
    assert list(store.build.parts) == ["RAM"]
    assert store.build.parts["RAM"].id == "b"
    assert store.build.total_price == 80
    assert store.build.total_wattage == 8


def test_missing_wattage_counts_as_zero():
    store = BuildStore()
    store.select_part(make_part("mon", "Monitor", price=300))
    assert store.build.total_wattage == 0
    assert store.build.total_price == 300


def test_incompatible_parts_are_kept():
    store = BuildStore()
    store.select_part(make_part("cpu", "CPU", socket="AM5"))
    store.select_part(make_part("mb", "Mainboard", socket="LGA1700"))

    assert set(store.build.parts) == {"CPU", "Mainboard"}
    assert [i.component for i in store.compatibility_issues] == ["CPU/Mainboard"]


def test_clear_build_keeps_type_only():
    store = BuildStore(build_type="Server")
    store.select_part(make_part("cpu", "CPU", price=300, wattage=120))
    store.set_full_build({"ai_reasoning": "picked for ECC"})

    store.clear_build()

    assert store.build.parts == {}
    assert store.build.total_price == 0
    assert store.build.total_wattage == 0
    assert store.build.type == "Server"
    assert store.build.ai_reasoning is None
    assert store.compatibility_issues == []


def test_set_build_type_keeps_parts_and_reruns_rules():
    store = BuildStore()
    store.select_part(make_part("cpu", "CPU", ecc=True))
    store.select_part(make_part("ram", "RAM"))
    assert store.compatibility_issues == []

    store.set_build_type("Workstation")

    assert set(store.build.parts) == {"CPU", "RAM"}
    assert [i.severity for i in store.compatibility_issues] == ["warning"]

    store.set_build_type("Office")
    assert store.compatibility_issues == []


def test_set_full_build_replaces_parts_and_keeps_other_fields():
    store = BuildStore(build_type="Server")
    store.set_full_build({"ai_reasoning": "quiet file server"})
    store.select_part(make_part("cpu", "CPU", price=300, wattage=120))
    store.select_part(make_part("gpu", "GPU", price=500, wattage=200))

    ram = make_part("ram", "RAM", price=90, wattage=10)
    store.set_full_build({"parts": {"RAM": ram}})

    assert list(store.build.parts) == ["RAM"]
    assert store.build.type == "Server"
    assert store.build.ai_reasoning == "quiet file server"
    assert store.build.total_price == 90
    assert store.build.total_wattage == 10


def test_set_full_build_without_parts_keeps_parts():
    store = BuildStore()
    store.select_part(make_part("cpu", "CPU", price=300))

    store.set_full_build(BuildUpdate(type="Office", ai_reasoning="budget pick"))

    assert list(store.build.parts) == ["CPU"]
    assert store.build.type == "Office"
    assert store.build.ai_reasoning == "budget pick"


def test_set_full_build_ignores_stale_totals():
    store = BuildStore()
    cpu = make_part("cpu", "CPU", price=300, wattage=65)
    store.set_full_build({"parts": {"CPU": cpu}, "total_price": 9999, "total_wattage": 1})
    assert store.build.total_price == 300
    assert store.build.total_wattage == 65


def test_set_full_build_rejects_part_in_wrong_slot():
    store = BuildStore()
    with pytest.raises(ValidationError):
        store.set_full_build({"parts": {"GPU": make_part("cpu", "CPU")}})
    assert store.build.parts == {}


def test_snapshots_are_not_changed_by_later_mutations():
    store = BuildStore()
    store.select_part(make_part("cpu", "CPU", price=200))
    before = store.snapshot()

    store.select_part(make_part("gpu", "GPU", price=600))
    store.remove_part("CPU")

    assert list(before.parts) == ["CPU"]
    assert before.total_price == 200
    assert store.build is not before


def test_recompute_is_idempotent():
    parts = [
        make_part("cpu", "CPU", price=199.99, wattage=65),
        make_part("ram", "RAM", price=0.01, wattage=10),
    ]
    assert compute_totals(parts) == compute_totals(parts)

    store = BuildStore()
    for part in parts:
        store.select_part(part)
    first = store.build
    store.set_full_build({})
    assert store.build.total_price == first.total_price
    assert store.build.total_wattage == first.total_wattage


def test_subscribers_see_post_mutation_snapshot():
    store = BuildStore()
    seen = []
    unsubscribe = store.subscribe(lambda build, issues: seen.append((build, issues)))

    store.select_part(make_part("psu", "PSU", wattage=100))
    store.select_part(make_part("gpu", "GPU", wattage=150))

    assert len(seen) == 2
    build, issues = seen[-1]
    assert build is store.build
    assert build.total_wattage == 250
    assert [i.severity for i in issues] == ["error"]

    unsubscribe()
    store.clear_build()
    assert len(seen) == 2


def test_stores_are_independent():
    first = BuildStore()
    second = BuildStore()
    first.select_part(make_part("cpu", "CPU", price=100))
    assert second.build.parts == {}
