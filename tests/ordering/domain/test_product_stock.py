"""Tests for Product stock movements."""

import pytest
from ordering.errors import InsufficientStockError, VariantNotFoundError
from ordering.stock.product import Product, Variant
from protean.exceptions import ValidationError


def _product(stock=5, variants=None):
    return Product(sku="SKU-1", name="Mug", price_cents=1200, stock=stock, variants=variants or [])


class TestDecrement:
    def test_decrement(self):
        product = _product(stock=5)
        product.decrement_stock(3)
        assert product.stock == 2

    def test_decrement_to_zero(self):
        product = _product(stock=2)
        product.decrement_stock(2)
        assert product.stock == 0

    def test_oversell_is_refused(self):
        product = _product(stock=2)
        with pytest.raises(InsufficientStockError) as exc:
            product.decrement_stock(3)
        assert exc.value.available == 2
        assert exc.value.requested == 3
        assert product.stock == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError):
            _product().decrement_stock(quantity)

    def test_variant_stock(self):
        variant = Variant(sku="SKU-1-L", name="Large", price_cents=1500, stock=4)
        product = _product(stock=0, variants=[variant])
        product.decrement_stock(1, variant_id=variant.id)
        assert product.variant(variant.id).stock == 3
        assert product.stock == 0

    def test_unknown_variant(self):
        product = _product(variants=[Variant(sku="V", price_cents=100, stock=1)])
        with pytest.raises(VariantNotFoundError):
            product.decrement_stock(1, variant_id="missing")


class TestRestore:
    def test_restore(self):
        product = _product(stock=1)
        product.restore_stock(4)
        assert product.stock == 5

    def test_restore_variant(self):
        variant = Variant(sku="SKU-1-S", price_cents=1000, stock=0)
        product = _product(variants=[variant])
        product.restore_stock(2, variant_id=variant.id)
        assert product.variant(variant.id).stock == 2


class TestPricing:
    def test_product_price(self):
        assert str(_product().unit_price()) == "12.00"

    def test_variant_price_overrides(self):
        variant = Variant(sku="SKU-1-L", price_cents=1550, stock=1)
        product = _product(variants=[variant])
        assert str(product.unit_price(variant.id)) == "15.50"
        assert product.has_variants


def test_negative_stock_is_rejected():
    with pytest.raises(ValidationError):
        _product(stock=-1)
