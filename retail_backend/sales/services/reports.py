# sales/services/reports.py

"""
SALES REPORTS (read only)

- sales_summary          : bill count and totals, split by payment mode
- company_bill_profit    : per bill, value / cost / profit of one company's lines
- salesman_summary       : bills and sales per salesman
- gst_wise_sales         : taxable value and tax per GST rate

All windows are inclusive on the bill date. Money is returned as strings.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Sum

from sales.models import Bill, BillItem, Salesman
from sales.services.billing import base_price

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _window(qs, *, field: str = "date", date_from=None, date_to=None):
    if date_from:
        qs = qs.filter(**{f"{field}__gte": date_from})
    if date_to:
        qs = qs.filter(**{f"{field}__lte": date_to})
    return qs


def sales_summary(*, date_from=None, date_to=None) -> dict:
    bills = _window(Bill.objects.all(), date_from=date_from, date_to=date_to)

    totals = bills.aggregate(
        bill_count=Count("id"),
        subtotal=Sum("subtotal"),
        total_gst=Sum("total_gst"),
        round_off=Sum("round_off"),
        grand_total=Sum("grand_total"),
    )

    by_mode = {mode: "0.00" for mode in Bill.PaymentMode.values}
    for row in bills.values("payment_mode").annotate(total=Sum("grand_total")):
        by_mode[row["payment_mode"]] = str(_money(row["total"]))

    return {
        "date_from": date_from.isoformat() if date_from else None,
        "date_to": date_to.isoformat() if date_to else None,
        "bill_count": totals["bill_count"] or 0,
        "subtotal": str(_money(totals["subtotal"])),
        "total_gst": str(_money(totals["total_gst"])),
        "round_off": str(_money(totals["round_off"])),
        "grand_total": str(_money(totals["grand_total"])),
        "by_payment_mode": by_mode,
    }


def company_bill_profit(*, company: str, date_from=None, date_to=None) -> dict:
    """
    For every bill holding lines of `company` (matched case-insensitively
    on the line's company snapshot):

        value  = sum of the lines' GST-exclusive price
        cogs   = purchase_price / units_per_strip * quantity
        profit = value - cogs

    Lines whose batch is gone have no known cost and are counted at zero.
    """
    items = _window(
        BillItem.objects.select_related("bill", "batch").filter(company_name__iexact=company.strip()),
        field="bill__date",
        date_from=date_from,
        date_to=date_to,
    )

    per_bill: dict = {}
    for item in items:
        row = per_bill.setdefault(
            item.bill_id,
            {
                "bill_id": str(item.bill_id),
                "bill_number": item.bill.bill_number,
                "date": item.bill.date,
                "customer_name": item.bill.customer_name,
                "value": Decimal("0"),
                "cogs": Decimal("0"),
                "uncosted_lines": 0,
            },
        )
        row["value"] += base_price(item.total, item.gst)
        if item.batch is None:
            row["uncosted_lines"] += 1
            continue
        units = Decimal(max(int(item.units_per_strip or 1), 1))
        row["cogs"] += item.batch.purchase_price / units * item.quantity

    rows = sorted(per_bill.values(), key=lambda r: (r["date"], r["bill_number"]), reverse=True)
    total_value = ZERO
    total_cogs = ZERO
    out = []
    for row in rows:
        value = _money(row["value"])
        cogs = _money(row["cogs"])
        total_value += value
        total_cogs += cogs
        out.append(
            {
                **row,
                "date": row["date"].isoformat(),
                "value": str(value),
                "cogs": str(cogs),
                "profit": str(value - cogs),
            }
        )

    return {
        "company": company,
        "rows": out,
        "total_value": str(total_value),
        "total_cogs": str(total_cogs),
        "total_profit": str(total_value - total_cogs),
    }


def salesman_summary(*, date_from=None, date_to=None) -> list[dict]:
    """Every salesman is listed, including those without bills in the window."""
    bills = _window(Bill.objects.filter(salesman__isnull=False), date_from=date_from, date_to=date_to)
    stats = {
        row["salesman_id"]: row
        for row in bills.values("salesman_id").annotate(
            bill_count=Count("id"), total_sales=Sum("grand_total")
        )
    }

    rows = []
    for salesman in Salesman.objects.order_by("name"):
        row = stats.get(salesman.pk, {})
        rows.append(
            {
                "salesman_id": str(salesman.pk),
                "name": salesman.name,
                "bill_count": row.get("bill_count", 0),
                "total_sales": str(_money(row.get("total_sales"))),
            }
        )
    return rows


def gst_wise_sales(*, date_from=None, date_to=None) -> list[dict]:
    items = _window(BillItem.objects.all(), field="bill__date", date_from=date_from, date_to=date_to)

    buckets = defaultdict(lambda: {"taxable": Decimal("0"), "gross": ZERO})
    for item in items.only("gst", "total"):
        bucket = buckets[_money(item.gst)]
        bucket["taxable"] += base_price(item.total, item.gst)
        bucket["gross"] += _money(item.total)

    rows = []
    for rate in sorted(buckets):
        taxable = _money(buckets[rate]["taxable"])
        gross = buckets[rate]["gross"]
        rows.append(
            {
                "gst": str(rate),
                "taxable_value": str(taxable),
                "tax": str(gross - taxable),
                "total": str(gross),
            }
        )
    return rows
