# products/models/company.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower


class Company(models.Model):
    """
    Manufacturer / brand master. Names are unique case-insensitively.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "companies"
        constraints = [
            models.UniqueConstraint(Lower("name"), name="uniq_company_name_ci"),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def __str__(self):
        return self.name
