# store/models/system_config.py

from django.db import models


class SystemConfig(models.Model):
    """
    Shop-wide switches.

    software_mode:
    - PHARMA: batches, expiry, schedule-H flags are first class
    - RETAIL: products get an auto-generated numeric barcode when none is given
    """

    SINGLETON_PK = 1

    class SoftwareMode(models.TextChoices):
        RETAIL = "Retail", "Retail"
        PHARMA = "Pharma", "Pharma"

    class InvoiceFormat(models.TextChoices):
        A4 = "A4", "A4"
        A5 = "A5", "A5"
        THERMAL = "Thermal", "Thermal"

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_PK, editable=False)

    software_mode = models.CharField(
        max_length=10, choices=SoftwareMode.choices, default=SoftwareMode.PHARMA
    )
    invoice_printing_format = models.CharField(
        max_length=10, choices=InvoiceFormat.choices, default=InvoiceFormat.A5
    )
    remark_line1 = models.CharField(max_length=255, blank=True, default="")
    remark_line2 = models.CharField(max_length=255, blank=True, default="")
    mrp_editable = models.BooleanField(default=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "System configuration"

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_PK
        super().save(*args, **kwargs)

    @classmethod
    def load(cls) -> "SystemConfig":
        obj, _ = cls.objects.get_or_create(pk=cls.SINGLETON_PK)
        return obj

    @property
    def is_retail(self) -> bool:
        return self.software_mode == self.SoftwareMode.RETAIL

    def __str__(self):
        return f"{self.software_mode} / {self.invoice_printing_format}"
