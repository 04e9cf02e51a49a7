# store/services/sequences.py

"""
HUMAN-READABLE DOCUMENT NUMBERS

Bill numbers (B0001) and voucher numbers (PV-000001 / RV-000001) are
allocated as "highest existing numeric suffix + 1". The column carries a
unique constraint; on a collision the caller retries with a fresh number.
"""

from __future__ import annotations

import logging
import re

from django.db import IntegrityError, transaction

logger = logging.getLogger("billing")

MAX_ATTEMPTS = 5


def next_number(model, *, field: str, prefix: str, width: int) -> str:
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    values = model.objects.filter(**{f"{field}__startswith": prefix}).values_list(field, flat=True)
    for value in values:
        m = pattern.match(value or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix}{highest + 1:0{width}d}"


def create_with_number(model, *, field: str, prefix: str, width: int, **fields):
    """
    Create a row with the next free number in `field`.

    Each attempt runs in its own savepoint so a unique-constraint collision
    does not poison the surrounding transaction.
    """
    last_exc = None
    for attempt in range(1, MAX_ATTEMPTS + 1):
        number = next_number(model, field=field, prefix=prefix, width=width)
        try:
            with transaction.atomic():
                return model.objects.create(**{field: number}, **fields)
        except IntegrityError as exc:
            last_exc = exc
            logger.warning(
                "Document number collision, retrying",
                extra={"model": model._meta.label, "number": number, "attempt": attempt},
            )
    raise last_exc
