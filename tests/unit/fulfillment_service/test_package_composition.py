"""
Unit Tests for package composition

Description, barcode, note and the outbound carrier payload shape.
"""
from decimal import Decimal

import pytest

from microservices.fulfillment_service.models import CarrierPackagePayload, format_amount
from microservices.fulfillment_service.package_builder import (
    compose_description,
    compose_note,
    compose_package,
    compute_barcode,
)
from tests.fixtures import make_address, make_company, make_item, make_order

pytestmark = pytest.mark.unit


class TestDescription:

    def test_items_joined_with_quantities(self):
        items = [make_item("A", 2), make_item("B", 1)]
        assert compose_description(items) == "A x2, B x1"

    def test_missing_product_name_uses_placeholder(self):
        assert compose_description([make_item(None, 3)]) == "منتج x3"
        assert compose_description([make_item("   ", 1)]) == "منتج x1"

    def test_empty_order(self):
        assert compose_description([]) == "طلب بدون منتجات"


class TestBarcodeAndNote:

    def test_barcode_is_order_number(self):
        order = make_order(order_number="ORD-20240101-0042")
        assert compute_barcode(order) == "ORD-20240101-0042"

    def test_note_prefers_delivery_notes(self):
        order = make_order(delivery_notes="Call before arrival", shipping_address=make_address(notes="Gate 2"))
        assert compose_note(order) == "Call before arrival"

    def test_note_falls_back_to_address_notes(self):
        order = make_order(shipping_address=make_address(notes="Gate 2"))
        assert compose_note(order) == "Gate 2"

    def test_note_default(self):
        order = make_order(order_number="ORD-1001", delivery_notes="  ")
        assert compose_note(order) == "Order ORD-1001"


class TestComposePackage:

    def test_fields_come_from_order_and_carrier(self):
        order = make_order(order_number="ORD-1001", total=Decimal("120"))
        draft = compose_package(order, make_company(company_id=7))

        assert draft.external_company_id == 7
        assert draft.order_id == order.order_id
        assert draft.to_name == "Ahmad Saleh"
        assert draft.to_phone == draft.alter_phone == "0599000000"
        assert draft.village_id == 55
        assert draft.street == "Main St 12"
        assert draft.total_cost == Decimal("120")
        assert draft.barcode == "ORD-1001"
        assert draft.description == "Shirt x2, Hat x1"
        assert draft.package_type == "normal"

    def test_blank_name_uses_placeholder(self):
        order = make_order(shipping_address=make_address(full_name="  "))
        assert compose_package(order, make_company()).to_name == "غير محدد"

    def test_payload_serializes_numbers_as_strings(self):
        order = make_order(total=Decimal("120.00"))
        payload = CarrierPackagePayload.from_package(compose_package(order, make_company()))
        body = payload.model_dump()

        assert body["village_id"] == "55"
        assert body["total_cost"] == "120"
        assert set(body) == {
            "to_name", "to_phone", "alter_phone", "description", "package_type",
            "village_id", "street", "total_cost", "note", "barcode",
        }


class TestFormatAmount:

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("120"), "120"),
        (Decimal("120.00"), "120"),
        (Decimal("99.50"), "99.5"),
        (Decimal("0"), "0"),
    ])
    def test_format(self, amount, expected):
        assert format_amount(amount) == expected
