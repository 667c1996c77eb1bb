import unittest

from stock_analytics.core.errors import ValidationError
from stock_analytics.services import analytics_service
from stock_analytics.services.sales_index import SalesIndex, normalize_item_key

from tests.support import make_cache, make_session, sale


class SalesIndexTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = make_session()
        self.cache = make_cache()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_normalize_item_key(self):
        self.assertEqual(normalize_item_key("  Sku-01 "), "sku-01")
        self.assertEqual(normalize_item_key(None), "")

    def test_empty_index(self):
        index = SalesIndex.load(self.db)
        self.assertTrue(index.is_empty)
        self.assertIsNone(index.get("SKU-1"))
        self.assertFalse(index.has_positive_sale("SKU-1"))

    def test_spellings_are_merged_and_logged(self):
        analytics_service.record_sales_batch(
            self.db,
            "shipments.csv",
            [
                sale("SKU-1", 0, 4, cbm=0.4),
                sale("sku-1", 0, 6, cbm=0.6),
                sale(" Sku-1", 3, 2, cbm=0.2),
                sale("SKU-2", 1, 0),
            ],
            cache=self.cache,
        )

        with self.assertLogs("stock_analytics.services.sales_index", level="INFO") as logs:
            index = SalesIndex.load(self.db)

        self.assertIn("merged 1 item keys", logs.output[0])
        self.assertEqual(len(index), 2)
        entry = index.get("SKU-1")
        self.assertEqual(entry.total_qty, 12.0)
        self.assertAlmostEqual(entry.total_cbm, 1.2)
        self.assertEqual(entry.sales_days, 2)
        self.assertTrue(index.has_positive_sale("sku-1"))
        self.assertFalse(index.has_positive_sale("SKU-2"))
        self.assertEqual(index.sold_item_keys(), {"sku-1"})

    def test_blank_item_is_rejected(self):
        with self.assertRaises(ValidationError):
            analytics_service.record_sales_batch(
                self.db, "shipments.csv", [{"item": "", "quantity": 1}], cache=self.cache
            )


if __name__ == "__main__":
    unittest.main()
