# sales/admin.py

"""
Bills, receipts and balances are read only in the admin: they move stock
and customer balances, which only the sales services may do.
"""

from django.contrib import admin

from sales.models import Bill, BillItem, Customer, CustomerPayment, Salesman


# ======================================================
# BILL ADMIN
# ======================================================


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0
    can_delete = False
    fields = ("product_name", "batch_number", "strip_qty", "loose_qty", "quantity", "mrp", "gst", "total")
    readonly_fields = fields


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ("bill_number", "date", "customer_name", "payment_mode", "grand_total")
    list_filter = ("payment_mode", "date")
    search_fields = ("bill_number", "customer_name")
    readonly_fields = (
        "bill_number",
        "customer",
        "payment_mode",
        "subtotal",
        "total_gst",
        "round_off",
        "grand_total",
        "version",
        "created_by",
        "created_at",
        "updated_at",
    )
    inlines = [BillItemInline]

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# CUSTOMERS / RECEIPTS
# ======================================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "opening_balance", "balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "phone")
    readonly_fields = ("opening_balance", "balance", "version", "created_at")


@admin.register(CustomerPayment)
class CustomerPaymentAdmin(admin.ModelAdmin):
    list_display = ("voucher_number", "date", "customer", "amount", "method")
    search_fields = ("voucher_number", "customer__name")
    readonly_fields = ("voucher_number", "customer", "amount", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Salesman)
class SalesmanAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "is_active")
