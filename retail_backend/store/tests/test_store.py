# store/tests/test_store.py

import json
import tempfile
from decimal import Decimal
from io import StringIO
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from sales.models import Customer, CustomerPayment
from store.models import CompanyProfile, SystemConfig
from store.services.backup import SCHEMA_VERSION, backup_filename, build_backup
from store.services.concurrency import ConcurrentUpdateError, cas_update, check_expected_version
from store.services.sequences import create_with_number, next_number

User = get_user_model()


# =====================================================
# SEQUENCES + COMPARE-AND-SWAP
# =====================================================


class SequenceTests(TestCase):
    """
    GUARANTEES:
    - numbering starts at 1 and zero-pads to the given width
    - the next number follows the highest numeric suffix, not the row count
    - values that do not match prefix + digits are ignored
    """

    def setUp(self):
        self.customer = Customer.objects.create(name="Anita")

    def _payment(self, voucher):
        return CustomerPayment.objects.create(
            customer=self.customer, voucher_number=voucher, amount=Decimal("1.00")
        )

    def test_first_number(self):
        self.assertEqual(
            next_number(CustomerPayment, field="voucher_number", prefix="RV-", width=6),
            "RV-000001",
        )

    def test_follows_highest_suffix(self):
        self._payment("RV-000002")
        self._payment("RV-000041")
        self._payment("RV-manual")

        self.assertEqual(
            next_number(CustomerPayment, field="voucher_number", prefix="RV-", width=6),
            "RV-000042",
        )

    def test_create_with_number(self):
        self._payment("RV-000007")
        payment = create_with_number(
            CustomerPayment,
            field="voucher_number",
            prefix="RV-",
            width=6,
            customer=self.customer,
            amount=Decimal("5.00"),
        )
        self.assertEqual(payment.voucher_number, "RV-000008")


class CompareAndSwapTests(TestCase):
    """
    GUARANTEES:
    - a matching version writes and bumps the version
    - a stale version writes nothing and raises ConcurrentUpdateError
    - a missing client version skips the check
    """

    def setUp(self):
        self.customer = Customer.objects.create(name="Anita")

    def test_matching_version(self):
        new_version = cas_update(Customer, pk=self.customer.pk, expected_version=1, phone="98450")

        self.assertEqual(new_version, 2)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.phone, "98450")
        self.assertEqual(self.customer.version, 2)

    def test_stale_version(self):
        cas_update(Customer, pk=self.customer.pk, expected_version=1, phone="1")

        with self.assertRaises(ConcurrentUpdateError):
            cas_update(Customer, pk=self.customer.pk, expected_version=1, phone="2")

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.phone, "1")

    def test_expected_version_check(self):
        check_expected_version(self.customer, None)
        check_expected_version(self.customer, "1")
        with self.assertRaises(ConcurrentUpdateError):
            check_expected_version(self.customer, 3)


# =====================================================
# SETTINGS + BACKUP
# =====================================================


class StoreSettingsApiTests(TestCase):
    """
    GUARANTEES:
    - profile and config are singletons readable by any signed-in user
    - only staff can change them
    """

    def setUp(self):
        self.client = APIClient()
        self.clerk = User.objects.create_user(username="clerk", password="pass1234")
        self.admin = User.objects.create_user(username="owner", password="pass1234", is_staff=True)

    def test_requires_authentication(self):
        self.assertEqual(self.client.get("/api/store/profile/").status_code, 401)

    def test_read_defaults(self):
        self.client.force_authenticate(self.clerk)

        res = self.client.get("/api/store/config/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["software_mode"], "Pharma")
        self.assertTrue(res.data["mrp_editable"])

        res = self.client.get("/api/store/profile/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["name"], "")

    def test_clerk_cannot_patch(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.patch("/api/store/profile/", {"name": "City Medicals"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_staff_patch(self):
        self.client.force_authenticate(self.admin)

        res = self.client.patch("/api/store/profile/", {"name": "City Medicals"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(CompanyProfile.load().name, "City Medicals")

        res = self.client.patch("/api/store/config/", {"software_mode": "Retail"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(SystemConfig.load().is_retail)
        self.assertEqual(SystemConfig.objects.count(), 1)

    def test_invalid_choice(self):
        self.client.force_authenticate(self.admin)
        res = self.client.patch("/api/store/config/", {"invoice_printing_format": "A3"}, format="json")
        self.assertEqual(res.status_code, 400)


class BackupTests(TestCase):
    """
    GUARANTEES:
    - backup carries schemaVersion, exportDate, user and every collection
    - the API response is served as backup_<date>.json
    - the command writes the same document to disk
    """

    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="pass1234", email="o@shop.in")
        Customer.objects.create(name="Anita")

    def test_document_shape(self):
        doc = build_backup(user=self.user)

        self.assertEqual(doc["schemaVersion"], SCHEMA_VERSION)
        self.assertIn("exportDate", doc)
        self.assertEqual(doc["user"]["username"], "owner")
        for key in (
            "companyProfile",
            "systemConfig",
            "products",
            "customers",
            "bills",
            "customerPayments",
            "suppliers",
            "purchases",
            "supplierPayments",
            "stockMovements",
        ):
            self.assertIn(key, doc["data"])
        self.assertEqual(len(doc["data"]["customers"]), 1)

    def test_anonymous_export_has_no_user(self):
        self.assertIsNone(build_backup()["user"])

    def test_api_download(self):
        client = APIClient()
        client.force_authenticate(self.user)

        res = client.get("/api/store/backup/")

        self.assertEqual(res.status_code, 200)
        self.assertIn(backup_filename(), res["Content-Disposition"])
        self.assertEqual(res.data["schemaVersion"], "1.0")

    def test_command_writes_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = StringIO()
            call_command("export_backup", "--output", tmp, stdout=out)

            target = Path(tmp) / backup_filename()
            self.assertTrue(target.exists())
            doc = json.loads(target.read_text(encoding="utf-8"))

        self.assertEqual(doc["schemaVersion"], "1.0")
        self.assertEqual(len(doc["data"]["customers"]), 1)
        self.assertIn("customers=1", out.getvalue())


class MetaEndpointTests(TestCase):
    """
    GUARANTEES:
    - the API index and health check answer without a token
    """

    def test_index_lists_modules(self):
        res = APIClient().get("/api/")
        self.assertEqual(res.status_code, 200)
        self.assertIn("bills", res.data["modules"]["sales"])

    def test_health(self):
        res = APIClient().get("/api/health/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data, {"status": "ok", "db": "ok"})
