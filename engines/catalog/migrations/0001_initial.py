import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RawMaterial",
            fields=[
                ("material_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("unit", models.CharField(default="units", max_length=32)),
                ("unit_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("stock_quantity", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("minimum_stock", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_raw_materials",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("product_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, default="", max_length=64)),
                ("category", models.CharField(max_length=100)),
                ("unit", models.CharField(default="pcs", max_length=32)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("stock", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_products",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["category"], name="idx_product_category"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductColor",
            fields=[
                ("color_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("hex_code", models.CharField(blank=True, default="", max_length=16)),
                (
                    "product",
                    models.ForeignKey(
                        db_column="product_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="colors",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_product_colors",
                "ordering": ["product_id", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "name"), name="uq_product_color_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductSize",
            fields=[
                ("size_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=50)),
                ("stock", models.PositiveIntegerField(default=0)),
                ("width", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("height", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("depth", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "color",
                    models.ForeignKey(
                        db_column="color_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sizes",
                        to="catalog.productcolor",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_product_sizes",
                "ordering": ["color_id", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("color", "name"), name="uq_color_size_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductAddon",
            fields=[
                ("addon_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity", models.DecimalField(decimal_places=2, default=1, max_digits=12)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                (
                    "product",
                    models.ForeignKey(
                        db_column="product_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="addons",
                        to="catalog.product",
                    ),
                ),
                (
                    "raw_material",
                    models.ForeignKey(
                        db_column="material_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="addon_rules",
                        to="catalog.rawmaterial",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_product_addons",
                "constraints": [
                    models.UniqueConstraint(fields=("product", "raw_material"), name="uq_product_addon_material"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ColorMaterial",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "color",
                    models.ForeignKey(
                        db_column="color_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bill_of_materials",
                        to="catalog.productcolor",
                    ),
                ),
                (
                    "raw_material",
                    models.ForeignKey(
                        db_column="material_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="color_rules",
                        to="catalog.rawmaterial",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_color_materials",
                "constraints": [
                    models.UniqueConstraint(fields=("color", "raw_material"), name="uq_color_material"),
                ],
            },
        ),
    ]
