from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CompanyProfile",
            fields=[
                ("id", models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("address", models.TextField(blank=True, default="")),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("gstin", models.CharField(blank=True, default="", max_length=20)),
                ("upi_id", models.CharField(blank=True, default="", max_length=100)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Company profile",
            },
        ),
        migrations.CreateModel(
            name="SystemConfig",
            fields=[
                ("id", models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                (
                    "software_mode",
                    models.CharField(
                        choices=[("Retail", "Retail"), ("Pharma", "Pharma")], default="Pharma", max_length=10
                    ),
                ),
                (
                    "invoice_printing_format",
                    models.CharField(
                        choices=[("A4", "A4"), ("A5", "A5"), ("Thermal", "Thermal")], default="A5", max_length=10
                    ),
                ),
                ("remark_line1", models.CharField(blank=True, default="", max_length=255)),
                ("remark_line2", models.CharField(blank=True, default="", max_length=255)),
                ("mrp_editable", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "System configuration",
            },
        ),
    ]
