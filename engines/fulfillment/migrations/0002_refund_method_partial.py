from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("fulfillment", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="refund",
            name="refund_type",
            field=models.CharField(
                choices=[("full", "Full"), ("items", "Selected items"), ("partial", "Partial amount")],
                max_length=16,
            ),
        ),
        migrations.AddField(
            model_name="refund",
            name="refund_method",
            field=models.CharField(default="cash", max_length=32),
            preserve_default=False,
        ),
    ]
