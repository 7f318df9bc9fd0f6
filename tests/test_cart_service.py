"""Tests for product selection, cart editing and order totals."""

from itertools import permutations

import pytest

from conftest import make_line, make_product
from domain.errors import ValidationError
from services.cart_service import (
    SelectionSet,
    clear_cart,
    compute_totals,
    edit_line,
    filter_products,
    materialize,
    quick_add,
    remove_line,
)


class TestSelectionSet:
    def test_toggle_weight_based_defaults_to_half_kilo(self, kg_product):
        selection = SelectionSet()

        assert selection.toggle(kg_product) is True

        entry = selection.get(kg_product.id)
        assert entry.quantity is None
        assert entry.weight == 0.5

    def test_toggle_count_based_defaults_to_one_unit(self, piece_product):
        selection = SelectionSet()
        selection.toggle(piece_product)

        entry = selection.get(piece_product.id)
        assert entry.quantity == 1
        assert entry.weight == pytest.approx(0.05)

    def test_toggle_count_based_without_avg_weight_starts_at_zero(self, box_without_avg):
        selection = SelectionSet()
        selection.toggle(box_without_avg)

        assert selection.get(box_without_avg.id).weight == 0

    def test_toggle_twice_unselects(self, kg_product):
        selection = SelectionSet()
        selection.toggle(kg_product)

        assert selection.toggle(kg_product) is False
        assert kg_product.id not in selection
        assert len(selection) == 0

    def test_keeps_pick_order(self, kg_product, piece_product, box_without_avg):
        selection = SelectionSet()
        for p in (piece_product, box_without_avg, kg_product):
            selection.toggle(p)

        assert selection.ids() == [piece_product.id, box_without_avg.id, kg_product.id]

    def test_edit_quantity_recomputes_weight(self, piece_product):
        selection = SelectionSet()
        selection.toggle(piece_product)

        entry = selection.edit(piece_product.id, "quantity", "3")

        assert entry.quantity == 3
        assert entry.weight == pytest.approx(0.15)

    def test_edit_unknown_product_is_ignored(self):
        assert SelectionSet().edit("missing", "weight", 1) is None


class TestMaterialize:
    def test_empty_selection_is_rejected_and_cart_untouched(self, kg_product):
        cart = [make_line(1.0, 100)]
        before = list(cart)

        with pytest.raises(ValidationError, match="ít nhất 1 sản phẩm"):
            materialize(SelectionSet(), cart)

        assert cart == before

    def test_count_based_quantity_three_gives_weight_from_average(self, piece_product):
        selection = SelectionSet()
        selection.toggle(piece_product)
        selection.edit(piece_product.id, "quantity", 3)

        cart = []
        lines = materialize(selection, cart)

        assert len(cart) == 1
        assert lines[0].quantity == 3
        assert lines[0].weight == pytest.approx(0.15)

    def test_weight_typed_in_picker_is_kept(self, piece_product):
        selection = SelectionSet()
        selection.toggle(piece_product)
        selection.edit(piece_product.id, "weight", 0.3)

        cart = []
        materialize(selection, cart)

        assert cart[0].quantity == 1
        assert cart[0].weight == pytest.approx(0.3)

    def test_weight_based_line_has_no_quantity(self, kg_product):
        selection = SelectionSet()
        selection.toggle(kg_product)

        cart = []
        materialize(selection, cart)

        assert cart[0].quantity is None
        assert cart[0].weight == 0.5

    def test_appends_in_pick_order_and_clears_selection(self, kg_product, piece_product):
        cart = [make_line(2.0, 1000)]
        selection = SelectionSet()
        selection.toggle(piece_product)
        selection.toggle(kg_product)

        materialize(selection, cart)

        assert [line.product.id for line in cart[1:]] == [piece_product.id, kg_product.id]
        assert len(selection) == 0

    def test_price_is_snapshotted(self, kg_product):
        selection = SelectionSet()
        selection.toggle(kg_product)
        cart = []
        materialize(selection, cart)

        kg_product.current_price = 999999

        assert cart[0].unit_price == 450000

    def test_notes_carry_over(self, kg_product):
        selection = SelectionSet()
        selection.toggle(kg_product)
        selection.edit(kg_product.id, "notes", "làm sạch")
        cart = []
        materialize(selection, cart)

        assert cart[0].notes == "làm sạch"


class TestQuickAdd:
    def test_new_product_appends_line_with_defaults(self, piece_product):
        cart = []
        line = quick_add(cart, piece_product)

        assert cart == [line]
        assert line.quantity == 1
        assert line.weight == pytest.approx(0.05)
        assert line.unit_price == 300000

    def test_weight_based_repeat_adds_half_kilo(self, kg_product):
        cart = []
        quick_add(cart, kg_product)
        quick_add(cart, kg_product)

        assert len(cart) == 1
        assert cart[0].weight == pytest.approx(1.0)

    def test_count_based_repeat_adds_unit_and_recomputes_weight(self, piece_product):
        cart = []
        quick_add(cart, piece_product)
        quick_add(cart, piece_product)

        assert len(cart) == 1
        assert cart[0].quantity == 2
        assert cart[0].weight == pytest.approx(0.1)


class TestEditLine:
    def test_quantity_edit_overwrites_manual_weight(self, piece_product):
        line = quick_add([], piece_product)
        edit_line(line, "weight", 2.0)

        edit_line(line, "quantity", 4)

        assert line.weight == pytest.approx(4 * 0.05)

    def test_quantity_without_average_keeps_weight(self, box_without_avg):
        line = quick_add([], box_without_avg)
        edit_line(line, "weight", 3.2)

        edit_line(line, "quantity", 5)

        assert line.quantity == 5
        assert line.weight == 3.2

    @pytest.mark.parametrize("value, expected", [(-2, 0), ("abc", 0), ("", 0), (None, 0), ("2.5", 2.5)])
    def test_quantity_is_parsed_and_clamped(self, piece_product, value, expected):
        line = quick_add([], piece_product)

        edit_line(line, "quantity", value)

        assert line.quantity == expected

    def test_weight_clamped_to_zero(self, kg_product):
        line = quick_add([], kg_product)

        edit_line(line, "weight", -1)

        assert line.weight == 0

    def test_weight_clamped_to_minimum(self, kg_product):
        line = quick_add([], kg_product)

        edit_line(line, "weight", 0.02, min_weight=0.1)

        assert line.weight == 0.1

    def test_weight_edit_leaves_quantity(self, piece_product):
        line = quick_add([], piece_product)

        edit_line(line, "weight", 1.7)

        assert line.quantity == 1
        assert line.weight == 1.7

    def test_notes_replaced(self, kg_product):
        line = quick_add([], kg_product)

        edit_line(line, "notes", "để riêng")

        assert line.notes == "để riêng"

    def test_unknown_field_rejected(self, kg_product):
        line = quick_add([], kg_product)

        with pytest.raises(ValueError, match="Unknown field"):
            edit_line(line, "price", 1)


class TestCartMutations:
    def test_remove_line(self):
        cart = [make_line(1, 1), make_line(2, 2)]

        removed = remove_line(cart, 0)

        assert removed.weight == 1
        assert [line.weight for line in cart] == [2]

    def test_remove_out_of_range_is_noop(self):
        cart = [make_line(1, 1)]

        assert remove_line(cart, 5) is None
        assert len(cart) == 1

    def test_clear_cart(self):
        cart = [make_line(1, 1), make_line(2, 2)]

        clear_cart(cart)

        assert cart == []


class TestComputeTotals:
    def test_worked_example(self):
        cart = [make_line(1.5, 200000), make_line(0.5, 450000)]

        totals = compute_totals(cart, 50000)

        assert totals.subtotal == 525000
        assert totals.discount == 50000
        assert totals.total == 475000

    def test_subtotal_independent_of_line_order(self):
        lines = [make_line(1.25, 180000), make_line(0.3, 920000), make_line(2.0, 55000)]
        expected = sum(line.weight * line.unit_price for line in lines)

        for ordering in permutations(lines):
            assert compute_totals(list(ordering)).subtotal == pytest.approx(expected)

    def test_discount_above_subtotal_gives_negative_total(self):
        totals = compute_totals([make_line(1, 10000)], 25000)

        assert totals.total == -15000

    def test_empty_cart(self):
        totals = compute_totals([], 0)

        assert totals.subtotal == 0
        assert totals.total == 0


class TestFilterProducts:
    def test_matches_name_or_code_case_insensitive(self):
        products = [
            make_product("a", name="Tôm Sú", code="TS01"),
            make_product("b", name="Cua biển", code="CB02"),
        ]

        assert [p.id for p in filter_products(products, "tôm")] == ["a"]
        assert [p.id for p in filter_products(products, "cb0")] == ["b"]

    def test_category_filter(self):
        products = [
            make_product("a", category_id="c1"),
            make_product("b", category_id="c2"),
        ]

        assert [p.id for p in filter_products(products, "", "c2")] == ["b"]
        assert len(filter_products(products)) == 2
