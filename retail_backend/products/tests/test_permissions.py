# products/tests/test_permissions.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Batch, Product

User = get_user_model()


class ProductApiTests(TestCase):
    """
    Product endpoints.

    GUARANTEES:
    - Anonymous users get 401
    - A product is created with its first batch in one request
    - Manual stock adjustments go through the stock service
    - GST rates in use cannot be deleted through the API
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="staff_user", password="password123")

    def _create_product(self):
        return self.client.post(
            "/api/products/products/",
            {
                "name": "ORS Sachet",
                "company": "Cipla",
                "gst": "5.00",
                "units_per_strip": 1,
                "first_batch": {
                    "batch_number": "ORS-001",
                    "expiry_date": "2030-01",
                    "stock": 50,
                    "mrp": "20.00",
                },
            },
            format="json",
        )

    def test_anonymous_user_is_rejected(self):
        response = self.client.get("/api/products/products/")
        self.assertEqual(response.status_code, 401)

    def test_create_and_list_product(self):
        self.client.force_authenticate(self.user)

        response = self._create_product()
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["company"], "Cipla")
        self.assertEqual(response.data["total_stock"], 50)
        self.assertEqual(response.data["batches"][0]["expiry_date"], "2030-01")

        listing = self.client.get("/api/products/products/", {"q": "ors"})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(len(listing.data), 1)

    def test_adjust_batch_stock(self):
        self.client.force_authenticate(self.user)
        product = Product.objects.get(pk=self._create_product().data["id"])
        batch = product.batches.get()

        response = self.client.post(
            f"/api/products/batches/{batch.pk}/adjust/",
            {"quantity_delta": -60},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"/api/products/batches/{batch.pk}/adjust/",
            {"quantity_delta": -10, "note": "breakage"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["batch"]["stock"], 40)
        self.assertEqual(Batch.objects.get(pk=batch.pk).stock, 40)

    def test_gst_rate_in_use_is_kept(self):
        self.client.force_authenticate(self.user)
        rate = self.client.post("/api/products/gst-rates/", {"rate": "5"}, format="json")
        self.assertEqual(rate.status_code, 201)
        Product.objects.create(name="Glucose", gst=Decimal("5.00"))

        response = self.client.delete(f"/api/products/gst-rates/{rate.data['id']}/")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Cannot delete GST rate", response.data["detail"])
