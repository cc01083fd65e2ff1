"""
Fulfillment Catalog — Storage Models
====================================
Variant hierarchy: Product → ProductColor → ProductSize.

RULES:
- A product with sizes carries a denormalized `stock` equal to the
  sum of all its sizes' stock. The inventory ledger recomputes it
  after every size mutation; nothing else writes it.
- A product without sizes is authoritative for its own `stock`.
- Raw-material stock is fractional (meters, liters, kilograms).
"""

import uuid

from django.db import models


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ItemKind(models.TextChoices):
    PRODUCT = "product", "Product"
    MATERIAL = "material", "Raw material"


MONEY = dict(max_digits=12, decimal_places=2)


# ══════════════════════════════════════════════════════════════
# RAW MATERIALS
# ══════════════════════════════════════════════════════════════

class RawMaterial(models.Model):
    material_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")
    unit = models.CharField(max_length=32, default="units")
    unit_price = models.DecimalField(default=0, **MONEY)
    stock_quantity = models.DecimalField(default=0, **MONEY)
    minimum_stock = models.DecimalField(default=0, **MONEY)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_raw_materials"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.stock_quantity} {self.unit})"


# ══════════════════════════════════════════════════════════════
# PRODUCTS AND VARIANTS
# ══════════════════════════════════════════════════════════════

class Product(models.Model):
    product_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="")
    category = models.CharField(max_length=100)
    unit = models.CharField(max_length=32, default="pcs")
    price = models.DecimalField(**MONEY)
    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="idx_product_category"),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.category}]"


class ProductColor(models.Model):
    color_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="colors",
        db_column="product_id",
    )
    name = models.CharField(max_length=100)
    hex_code = models.CharField(max_length=16, blank=True, default="")

    class Meta:
        db_table = "catalog_product_colors"
        ordering = ["product_id", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "name"],
                name="uq_product_color_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} / {self.name}"


class ProductSize(models.Model):
    size_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    color = models.ForeignKey(
        ProductColor,
        on_delete=models.CASCADE,
        related_name="sizes",
        db_column="color_id",
    )
    name = models.CharField(max_length=50)
    stock = models.PositiveIntegerField(default=0)
    width = models.DecimalField(null=True, blank=True, max_digits=10, decimal_places=2)
    height = models.DecimalField(null=True, blank=True, max_digits=10, decimal_places=2)
    depth = models.DecimalField(null=True, blank=True, max_digits=10, decimal_places=2)

    class Meta:
        db_table = "catalog_product_sizes"
        ordering = ["color_id", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["color", "name"],
                name="uq_color_size_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.color_id} / {self.name} ({self.stock})"


# ══════════════════════════════════════════════════════════════
# CONSUMPTION RULES
# ══════════════════════════════════════════════════════════════

class ProductAddon(models.Model):
    """Optional add-on sold with a product; consumes `quantity` of the material per unit."""

    addon_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="addons",
        db_column="product_id",
    )
    raw_material = models.ForeignKey(
        RawMaterial,
        on_delete=models.PROTECT,
        related_name="addon_rules",
        db_column="material_id",
    )
    quantity = models.DecimalField(default=1, **MONEY)
    price = models.DecimalField(default=0, **MONEY)

    class Meta:
        db_table = "catalog_product_addons"
        constraints = [
            models.UniqueConstraint(
                fields=["product", "raw_material"],
                name="uq_product_addon_material",
            ),
        ]


class ColorMaterial(models.Model):
    """Bill of materials: each unit sold in this color consumes `quantity` of the material."""

    color = models.ForeignKey(
        ProductColor,
        on_delete=models.CASCADE,
        related_name="bill_of_materials",
        db_column="color_id",
    )
    raw_material = models.ForeignKey(
        RawMaterial,
        on_delete=models.PROTECT,
        related_name="color_rules",
        db_column="material_id",
    )
    quantity = models.DecimalField(**MONEY)

    class Meta:
        db_table = "catalog_color_materials"
        constraints = [
            models.UniqueConstraint(
                fields=["color", "raw_material"],
                name="uq_color_material",
            ),
        ]
