from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="supplyrequest",
            name="approval_notes",
            field=models.TextField(blank=True),
        ),
        migrations.AddField(
            model_name="release",
            name="release_type",
            field=models.CharField(
                choices=[
                    ("department_request", "Department Request"),
                    ("emergency", "Emergency Release"),
                    ("transfer", "Inter-department Transfer"),
                    ("maintenance", "Equipment Maintenance"),
                    ("disposal", "Disposal/Waste"),
                    ("return", "Return to Supplier"),
                ],
                db_index=True,
                default="department_request",
                max_length=24,
            ),
        ),
        migrations.AddField(
            model_name="release",
            name="recipient_name",
            field=models.CharField(default="", max_length=255),
            preserve_default=False,
        ),
        migrations.AddField(
            model_name="release",
            name="recipient_id",
            field=models.CharField(blank=True, max_length=64),
        ),
        migrations.AddField(
            model_name="release",
            name="purpose",
            field=models.TextField(default=""),
            preserve_default=False,
        ),
    ]
