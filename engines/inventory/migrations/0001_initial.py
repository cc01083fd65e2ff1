import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("movement_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("ISSUE", "Issue (sale)"),
                            ("RECEIVE", "Receive (goods received)"),
                            ("RETURN_IN", "Return in (refund)"),
                            ("CONSUME", "Consume (add-on / bill of materials)"),
                        ],
                        max_length=16,
                    ),
                ),
                ("granularity", models.CharField(max_length=16)),
                ("item_id", models.UUIDField()),
                ("size_id", models.UUIDField(blank=True, null=True)),
                ("quantity_requested", models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantity_applied", models.DecimalField(decimal_places=2, max_digits=12)),
                ("shortfall", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("stock_after", models.DecimalField(decimal_places=2, max_digits=12)),
                ("reference", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "inventory_stock_movements",
                "ordering": ["created_at", "movement_id"],
                "indexes": [
                    models.Index(fields=["item_id", "created_at"], name="idx_movement_item_time"),
                    models.Index(fields=["reference"], name="idx_movement_reference"),
                ],
            },
        ),
    ]
