import django.db.models.deletion
from django.db import migrations, models


ITEM_KIND_CHOICES = [("product", "Product"), ("material", "Raw material")]

PO_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("ordered", "Ordered"),
    ("received", "Partially received"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("po_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("vendor_name", models.CharField(max_length=255)),
                ("vendor_email", models.CharField(blank=True, default="", max_length=255)),
                ("vendor_phone", models.CharField(blank=True, default="", max_length=64)),
                ("status", models.CharField(choices=PO_STATUS_CHOICES, default="pending", max_length=16)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("expected_delivery", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_by", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "fulfillment_purchase_orders",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("item_kind", models.CharField(choices=ITEM_KIND_CHOICES, max_length=16)),
                ("item_id", models.UUIDField()),
                ("color_id", models.UUIDField(blank=True, null=True)),
                ("size_name", models.CharField(blank=True, default="", max_length=50)),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, default="", max_length=64)),
                ("unit", models.CharField(blank=True, default="", max_length=32)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("received_quantity", models.PositiveIntegerField(default=0)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        db_column="po_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="fulfillment.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_purchase_order_items",
                "ordering": ["purchase_order_id", "line_no"],
            },
        ),
        migrations.AddConstraint(
            model_name="purchaseorderitem",
            constraint=models.UniqueConstraint(fields=("purchase_order", "line_no"), name="uq_po_line_no"),
        ),
        migrations.CreateModel(
            name="PurchaseOrderEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=PO_STATUS_CHOICES, max_length=16)),
                ("note", models.TextField(blank=True, default="")),
                ("actor_id", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField()),
                (
                    "purchase_order",
                    models.ForeignKey(
                        db_column="po_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="timeline",
                        to="fulfillment.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_purchase_order_timeline",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("order_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("pos", "Point of sale"),
                            ("ecommerce", "E-commerce"),
                            ("purchase_receipt", "Goods received"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("completed", "Completed"),
                            ("refunded", "Refunded"),
                            ("partially-refunded", "Partially refunded"),
                            ("pending_payment", "Pending payment"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("cancelled", "Cancelled"),
                            ("received", "Received"),
                        ],
                        max_length=32,
                    ),
                ),
                ("customer_name", models.CharField(blank=True, default="", max_length=255)),
                ("customer_phone", models.CharField(blank=True, default="", max_length=64)),
                ("customer_email", models.CharField(blank=True, default="", max_length=255)),
                ("customer_address", models.TextField(blank=True, default="")),
                ("payment_method", models.CharField(blank=True, default="", max_length=32)),
                ("delivery_zone", models.CharField(blank=True, default="", max_length=64)),
                ("applied_coupon", models.CharField(blank=True, default="", max_length=50)),
                ("notes", models.TextField(blank=True, default="")),
                ("header", models.JSONField(blank=True, default=dict)),
                ("created_by", models.CharField(blank=True, default="", max_length=255)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("category_tax_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("full_bill_tax_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("delivery_charge", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("applied_taxes", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        blank=True,
                        db_column="po_id",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="fulfillment.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_orders",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["source", "status"], name="idx_order_source_status"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["created_at"], name="idx_order_created"),
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("item_kind", models.CharField(choices=ITEM_KIND_CHOICES, max_length=16)),
                ("item_id", models.UUIDField()),
                ("color_id", models.UUIDField(blank=True, null=True)),
                ("size_id", models.UUIDField(blank=True, null=True)),
                ("size_name", models.CharField(blank=True, default="", max_length=50)),
                ("name", models.CharField(max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("addons", models.JSONField(blank=True, default=list)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("refunded_quantity", models.PositiveIntegerField(default=0)),
                (
                    "order",
                    models.ForeignKey(
                        db_column="order_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="fulfillment.order",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_order_items",
                "ordering": ["order_id", "line_no"],
            },
        ),
        migrations.AddConstraint(
            model_name="orderitem",
            constraint=models.UniqueConstraint(fields=("order", "line_no"), name="uq_order_line_no"),
        ),
        migrations.CreateModel(
            name="Refund",
            fields=[
                ("refund_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                (
                    "refund_type",
                    models.CharField(choices=[("full", "Full"), ("items", "Selected items")], max_length=16),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("reason", models.TextField(blank=True, default="")),
                ("processed_by", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField()),
                (
                    "order",
                    models.ForeignKey(
                        db_column="order_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="fulfillment.order",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_refunds",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="RefundItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                (
                    "order_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refund_lines",
                        to="fulfillment.orderitem",
                    ),
                ),
                (
                    "refund",
                    models.ForeignKey(
                        db_column="refund_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="fulfillment.refund",
                    ),
                ),
            ],
            options={
                "db_table": "fulfillment_refund_items",
            },
        ),
    ]
