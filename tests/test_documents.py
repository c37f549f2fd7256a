"""
Unit tests for printable document rendering.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from models.catalog import Weight
from models.order import Address, Customer, LineItem, Order
from modules.documents import (
    BusinessInfo,
    DocumentKind,
    LAYOUTS,
    format_money,
    format_weight,
    parse_document_kinds,
    render_document,
    render_documents,
)


# Fixtures

@pytest.fixture
def order():
    return Order(
        id="gid://shopify/Order/1001",
        name="#1001",
        created_at=datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc),
        subtotal=Decimal("100.00"),
        tax=Decimal("13.00"),
        shipping=Decimal("0"),
        discount=Decimal("5.00"),
        total=Decimal("108.00"),
        customer=Customer(first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        shipping_address=Address(
            first_name="Ada", last_name="Lovelace", address1="1 Main St",
            city="Toronto", province="ON", zip="M5V 1A1", country="Canada",
        ),
        line_items=(
            LineItem(
                title="Gold <Ring>",
                quantity=2,
                unit_price=Decimal("50"),
                discounted_unit_price=Decimal("47.50"),
                description="18k & polished",
                image_url="https://cdn.example.com/ring.jpg",
                weight=Weight(Decimal("4.5"), "GRAMS"),
            ),
        ),
    )


@pytest.fixture
def business():
    return BusinessInfo(name="Dubai Jewellers", address="2700 N Park Dr", city="Brampton, ON", phone="416-465-1200")


def page_kinds(html):
    return re.findall(r'<section class="page page-([a-z-]+)">', html)


class TestParseDocumentKinds:
    """Test the document selector."""

    def test_enum_values(self):
        assert parse_document_kinds("invoice,delivery") == [DocumentKind.INVOICE, DocumentKind.DELIVERY]

    def test_original_labels(self):
        assert parse_document_kinds("Invoice,Packing Slip,Receipt") == [
            DocumentKind.INVOICE,
            DocumentKind.PACKING_SLIP,
            DocumentKind.RECEIPT,
        ]
        assert parse_document_kinds("Delivery Receipt") == [DocumentKind.DELIVERY]

    def test_duplicates_dropped(self):
        assert parse_document_kinds("receipt, RECEIPT ,invoice") == [DocumentKind.RECEIPT, DocumentKind.INVOICE]

    @pytest.mark.parametrize("raw", [None, "", " , "])
    def test_empty_selection(self, raw):
        with pytest.raises(ValidationError):
            parse_document_kinds(raw)

    def test_unknown_kind(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_document_kinds("invoice,quote")
        assert exc_info.value.message == "Unknown document type: quote"


class TestFormatting:
    """Test money and weight helpers."""

    def test_money_has_two_decimals(self):
        assert format_money(Decimal("12.5")) == "$12.50"
        assert format_money(Decimal("0")) == "$0.00"
        assert format_money(Decimal("1.005")) == "$1.01"

    def test_weight(self):
        assert format_weight(Weight(Decimal("10.0"), "GRAMS")) == "10 GRAMS"
        assert format_weight(None) == "N/A"
        assert format_weight(Weight(Decimal("0"), "GRAMS")) == "N/A"


class TestLayouts:
    """Test the money rows of each document kind."""

    def test_invoice_totals_hide_zero_rows(self, order):
        rows = LAYOUTS[DocumentKind.INVOICE].totals(order)
        assert rows == [
            ("Subtotal", "$100.00", False),
            ("Total Discounts", "- $5.00", False),
            ("Tax", "$13.00", False),
            ("Total", "$108.00", True),
        ]

    def test_appraisal_total_label(self, order):
        rows = LAYOUTS[DocumentKind.APPRAISAL].totals(order)
        assert rows[-1] == ("Total Appraised Value", "$108.00", True)
        assert all(label != "Tax" for label, _, _ in rows)

    def test_delivery_only_total(self, order):
        assert LAYOUTS[DocumentKind.DELIVERY].totals(order) == [("Total", "$108.00", True)]

    def test_packing_slip_has_no_money(self, order):
        assert LAYOUTS[DocumentKind.PACKING_SLIP].totals(order) == []


class TestRendering:
    """Test rendered HTML."""

    def test_two_documents_in_request_order(self, order, business):
        html = render_documents([DocumentKind.INVOICE, DocumentKind.DELIVERY], order, business)

        assert page_kinds(html) == ["invoice", "delivery"]
        assert html.count('<section class="page') == 2
        assert html.index("<h1>Invoice</h1>") < html.index("<h1>Delivery Receipt</h1>")
        assert "page-break-after: always" in html

    def test_order_text_is_escaped(self, order):
        html = render_document(DocumentKind.INVOICE, order)

        assert "Gold &lt;Ring&gt;" in html
        assert "Gold <Ring>" not in html
        assert "18k &amp; polished" in html

    def test_invoice_content(self, order):
        html = render_document(DocumentKind.INVOICE, order)

        assert "Shipping Address" in html
        assert "$50.00" in html
        assert "$100.00" in html
        assert "- $5.00" in html
        assert "Total Shipping" not in html

    def test_packing_slip_has_weights_but_no_prices(self, order):
        html = render_document(DocumentKind.PACKING_SLIP, order)

        assert "4.5 GRAMS" in html
        assert "$" not in html

    def test_receipt_has_no_shipping_block(self, order):
        html = render_document(DocumentKind.RECEIPT, order)
        assert "Shipping Address" not in html
        assert "$108.00" in html

    def test_delivery_signature_block(self, order):
        html = render_document(DocumentKind.DELIVERY, order)
        assert "signature-block" in html
        assert "4.5 GRAMS" in html

    def test_appraisal(self, order, business):
        html = render_document(DocumentKind.APPRAISAL, order, business)

        assert "Dubai Jewellers" in html
        assert "Tel: 416-465-1200" in html
        assert "Total Appraised Value" in html
        assert "Valuation Basis" in html
        assert "1 Main St, Toronto, ON M5V 1A1, Canada" in html
        assert 'src="https://cdn.example.com/ring.jpg"' in html
        assert "Shipping Address" not in html

    def test_single_document_title(self, order):
        html = render_documents([DocumentKind.RECEIPT], order)
        assert "<title>Receipt - #1001</title>" in html
