from decimal import Decimal

import pytest

from produtividade.catalog import TASKS, task_ids
from produtividade.period import Period
from produtividade.store import (
    ProductivityStore,
    parse_decimal_or_zero,
    parse_int_or_zero,
    total_effort,
    total_points,
)

FEV = Period(2026, "fev")
MAR = Period(2026, "mar")


def test_get_count_defaults_to_zero():
    store = ProductivityStore()
    assert store.get_count(FEV, 1) == 0


@pytest.mark.parametrize(
    "value,expected",
    [("12", 12), ("12abc", 12), ("-4", 0), ("abc", 0), ("", 0), (None, 0), (7, 7), (3.9, 3)],
)
def test_set_count_coerces_input(value, expected):
    store = ProductivityStore()
    assert store.set_count(FEV, 1, value) == expected
    assert store.get_count(FEV, 1) == max(0, parse_int_or_zero(value)) == expected


def test_merge_record_overwrites_and_keeps_others():
    store = ProductivityStore({FEV: {1: 10, 2: 3}})
    store.merge_record(FEV, {1: 4, 14: 6})
    assert store.record(FEV) == {1: 4, 2: 3, 14: 6}


def test_merge_record_is_idempotent():
    once = ProductivityStore({FEV: {1: 10}})
    twice = ProductivityStore({FEV: {1: 10}})
    once.merge_record(MAR, {1: 5, 4: 2})
    twice.merge_record(MAR, {1: 5, 4: 2})
    twice.merge_record(MAR, {1: 5, 4: 2})
    assert once.to_document() == twice.to_document()


def test_totals_ignore_insertion_order():
    a = ProductivityStore()
    a.merge_record(FEV, {1: 2})
    a.merge_record(MAR, {1: 3, 4: 1})
    b = ProductivityStore()
    b.merge_record(MAR, {1: 3, 4: 1})
    b.merge_record(FEV, {1: 2})
    assert a.totals() == b.totals()
    assert a.totals()[1] == 5


def test_totals_cover_every_catalog_task():
    totals = ProductivityStore().totals()
    assert sorted(totals) == sorted(task_ids())
    assert set(totals.values()) == {0}


def test_totals_with_active_filter():
    store = ProductivityStore({FEV: {1: 2}, MAR: {1: 3}, Period(2027, "jan"): {1: 100}})
    totals = store.totals(True, FEV, Period(2026, "dez"))
    assert totals[1] == 5
    assert store.totals(False)[1] == 105


def test_totals_filter_requires_bounds():
    with pytest.raises(ValueError):
        ProductivityStore().totals(True)


def test_total_points_matches_unit_values():
    store = ProductivityStore({FEV: {1: 11, 292: 38, 40: 114}})
    totals = store.totals()
    expected = sum((totals[t.id] * t.unit_value for t in TASKS), Decimal("0"))
    assert total_points(totals) == expected == Decimal("5.5") + Decimal("68.4") + Decimal("22.8")
    assert total_effort(totals) == 163


def test_reset_then_totals_are_zero():
    store = ProductivityStore({FEV: {1: 2}})
    store.reset()
    assert store.periods() == []
    assert all(v == 0 for v in store.totals().values())


def test_all_zero_record_is_kept():
    store = ProductivityStore()
    store.set_count(FEV, 1, "0")
    assert store.periods() == [FEV]
    assert not store.has_any_data()


def test_document_round_trip_uses_string_keys():
    store = ProductivityStore({FEV: {1: 2, 292: 38}})
    document = store.to_document()
    assert document == {"2026-fev": {"1": 2, "292": 38}}
    assert ProductivityStore.from_document(document).to_document() == document


def test_from_document_skips_malformed_entries():
    store = ProductivityStore.from_document({"bad": {"1": 2}, "2026-mar": {"4": "7", "x": 1}, "2026-abr": 5})
    assert store.periods() == [MAR]
    assert store.record(MAR) == {4: 7}


@pytest.mark.parametrize(
    "value,expected",
    [("10,5", Decimal("10.5")), (" 12 ", Decimal("12")), ("abc", 0), ("NaN", 0), ("Infinity", 0), (None, 0)],
)
def test_parse_decimal_or_zero_only_yields_finite_numbers(value, expected):
    number = parse_decimal_or_zero(value)
    assert number == expected
    assert number.is_finite()
