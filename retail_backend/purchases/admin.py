# purchases/admin.py

from django.contrib import admin

from purchases.models import Purchase, PurchaseItem, Supplier, SupplierPayment


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "gstin", "opening_balance", "balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "gstin")
    readonly_fields = ("opening_balance", "balance", "version", "created_at")


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    can_delete = False
    fields = ("product_name", "batch_number", "expiry_date", "quantity", "purchase_price", "line_total")
    readonly_fields = fields


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "supplier", "invoice_date", "total_amount")
    list_filter = ("invoice_date",)
    search_fields = ("invoice_number", "supplier__name")
    readonly_fields = ("supplier", "total_amount", "created_by", "created_at", "updated_at")
    inlines = [PurchaseItemInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SupplierPayment)
class SupplierPaymentAdmin(admin.ModelAdmin):
    list_display = ("voucher_number", "date", "supplier", "amount", "method")
    search_fields = ("voucher_number", "supplier__name")
    readonly_fields = ("voucher_number", "supplier", "amount", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False
