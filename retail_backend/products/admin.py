# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe stock):

- Batch.stock and Batch.version are read-only here; stock only changes
  through products.services.stock (bills, purchases, adjustments).
- StockMovement rows are immutable: no add, change or delete.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Batch, Company, GstRate, Product, StockMovement


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(GstRate)
class GstRateAdmin(admin.ModelAdmin):
    list_display = ("rate", "created_at")


class BatchInline(admin.TabularInline):
    model = Batch
    extra = 0
    fields = ("batch_number", "expiry_date", "stock", "mrp", "purchase_price", "sale_rate", "version")
    readonly_fields = ("stock", "version")
    can_delete = False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "company",
        "gst",
        "units_per_strip",
        "barcode",
        "is_schedule_h",
        "is_active",
    )
    list_filter = ("is_active", "is_schedule_h", "gst")
    search_fields = ("name", "barcode", "composition")
    readonly_fields = ("created_at", "updated_at")
    inlines = [BatchInline]


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = ("product", "batch_number", "expiry_date", "stock", "mrp", "version")
    search_fields = ("product__name", "batch_number")
    list_filter = ("expiry_date",)
    readonly_fields = ("stock", "opening_stock", "version", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("created_at", "product", "batch", "movement_type", "reason", "quantity", "stock_after")
    list_filter = ("movement_type", "reason")
    search_fields = ("product__name", "batch__batch_number")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
