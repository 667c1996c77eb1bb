import unittest
import uuid

from fastapi.testclient import TestClient

from stock_analytics.dependencies import get_db, get_result_cache
from stock_analytics.main import app

from tests.support import day, make_cache, make_session


def upload_payload(file_name="march.xlsx"):
    return {
        "fileName": file_name,
        "rows": [
            {
                "item": "SKU-A",
                "warehouse": "WH-1",
                "itemGroup": "Kitchen",
                "cbmPerUnit": 2,
                "dailyQuantities": [
                    {"date": day(0).isoformat(), "qty": 60},
                    {"date": day(1).isoformat(), "qty": 40},
                ],
            },
            {
                "item": "SKU-E",
                "warehouse": "WH-2",
                "itemGroup": "Edel",
                "cbmPerUnit": 0.5,
                "dailyQuantities": [{"date": day(o).isoformat(), "qty": 8} for o in range(8)],
            },
            {"item": "Total", "isTotalRow": True, "dailyQuantities": [{"date": day(0).isoformat(), "qty": 68}]},
        ],
    }


class InventoryApiTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = make_session()
        self.cache = make_cache()

        def override_get_db():
            yield self.db

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_result_cache] = lambda: self.cache
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        self.engine.dispose()

    def upload(self, file_name="march.xlsx"):
        response = self.client.post("/inventory/uploads", json=upload_payload(file_name))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertIn("cache", response.json())

    def test_upload_then_summary(self):
        created = self.upload()
        self.assertEqual(created["rows_inserted"], 3)
        self.assertEqual(created["readings_inserted"], 11)
        self.assertEqual(created["min_date"], day(0).isoformat())

        response = self.client.get("/inventory/summary", params={"granularity": "week"})
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["cards"]["inbound_sku_count"], 2)
        self.assertEqual(body["cards"]["inventory_qty_total"], 58.0)
        self.assertEqual(body["cards"]["total_cbm"], 104.0)
        self.assertEqual(body["time_series"]["granularity"], "week")

        filtered = self.client.get(
            "/inventory/summary",
            params=[("category", "Edel"), ("batch_id", created["batch_id"])],
        ).json()
        self.assertEqual(filtered["cards"]["inventory_qty_total"], 8.0)

    def test_reports(self):
        self.upload()

        fast = self.client.get("/inventory/fast-moving-skus", params={"min_avg_qty": 10})
        self.assertEqual(fast.status_code, 200, fast.text)
        self.assertEqual([sku["item"] for sku in fast.json()["skus"]], ["SKU-A"])

        dead = self.client.get("/inventory/zero-order-products", params={"warehouse": "WH-2"})
        self.assertEqual(dead.status_code, 200, dead.text)
        self.assertEqual([p["item"] for p in dead.json()["products"]], ["SKU-E"])

    def test_list_and_delete_uploads(self):
        created = self.upload()

        listed = self.client.get("/inventory/uploads").json()
        self.assertEqual([b["batch_id"] for b in listed], [created["batch_id"]])
        self.assertEqual(listed[0]["status"], "processed")

        self.assertEqual(self.client.delete(f"/inventory/uploads/{created['batch_id']}").status_code, 204)
        self.assertEqual(self.client.get("/inventory/uploads").json(), [])

        missing = self.client.delete(f"/inventory/uploads/{created['batch_id']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["kind"], "not_found")

    def test_error_responses(self):
        empty = self.client.get("/inventory/summary")
        self.assertEqual(empty.status_code, 404)
        self.assertEqual(empty.json()["kind"], "not_found")

        self.upload()
        bad_range = self.client.get(
            "/inventory/summary", params={"from_date": day(5).isoformat(), "to_date": day(1).isoformat()}
        )
        self.assertEqual(bad_range.status_code, 400)
        self.assertEqual(bad_range.json()["kind"], "validation_error")

        bad_id = self.client.delete("/inventory/uploads/not-a-uuid")
        self.assertEqual(bad_id.status_code, 400)

        unknown = self.client.get("/inventory/summary", params={"batch_id": str(uuid.uuid4())})
        self.assertEqual(unknown.status_code, 404)

        bad_rows = self.client.post(
            "/inventory/uploads", json={"fileName": "x.xlsx", "rows": [{"item": "A", "cbmPerUnit": -1}]}
        )
        self.assertEqual(bad_rows.status_code, 422)
        self.assertEqual(bad_rows.json()["kind"], "validation_error")
        self.assertIn("cbmPerUnit", bad_rows.json()["message"])

    def test_rejected_query_parameters_carry_kind_and_message(self):
        self.upload()
        requests = [
            ("/inventory/fast-moving-skus", {"limit": 0}, "limit"),
            ("/inventory/fast-moving-skus", {"min_avg_qty": "lots"}, "min_avg_qty"),
            ("/inventory/zero-order-products", {"min_days_in_stock": -1}, "min_days_in_stock"),
        ]
        for path, params, field in requests:
            with self.subTest(path=path, params=params):
                response = self.client.get(path, params=params)
                self.assertEqual(response.status_code, 422)
                body = response.json()
                self.assertEqual(body["kind"], "validation_error")
                self.assertIn(field, body["message"])
                self.assertNotIn("detail", body)

    def test_duplicate_batch_ids_are_rejected(self):
        created = self.upload()
        response = self.client.get(
            "/inventory/summary",
            params=[("batch_id", created["batch_id"]), ("batch_id", created["batch_id"])],
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "validation_error")


if __name__ == "__main__":
    unittest.main()
