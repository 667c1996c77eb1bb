import unittest

from stock_analytics.core.errors import NotFoundError, ValidationError
from stock_analytics.services import analytics_service
from stock_analytics.services.movement import (
    classify_stock_status,
    days_of_stock,
    estimate_daily_consumption,
)
from stock_analytics.services.sales_index import ItemSales

from tests.support import make_cache, make_session, sale, sku_row


class StockStatusTest(unittest.TestCase):
    def test_bands(self):
        self.assertEqual(classify_stock_status(0), "critical")
        self.assertEqual(classify_stock_status(6), "critical")
        self.assertEqual(classify_stock_status(7), "low")
        self.assertEqual(classify_stock_status(13), "low")
        self.assertEqual(classify_stock_status(14), "adequate")
        self.assertEqual(classify_stock_status(29), "adequate")
        self.assertEqual(classify_stock_status(30), "high")
        self.assertEqual(classify_stock_status(999), "high")

    def test_days_of_stock_rounds_and_caps(self):
        self.assertEqual(days_of_stock(25, 10, 999), 3)
        self.assertEqual(days_of_stock(35, 10, 999), 4)
        self.assertEqual(days_of_stock(10, 0, 999), 999)
        self.assertEqual(days_of_stock(100000, 1, 999), 999)

    def test_consumption_prefers_sales(self):
        sales = ItemSales(total_qty=30, sales_days=3, has_positive_sale=True)
        self.assertEqual(estimate_daily_consumption(100, sales, 0.1), (10.0, True))

        daily, from_sales = estimate_daily_consumption(100, None, 0.1)
        self.assertAlmostEqual(daily, 10.0)
        self.assertFalse(from_sales)

        daily, from_sales = estimate_daily_consumption(80, ItemSales(), 0.1)
        self.assertAlmostEqual(daily, 8.0)
        self.assertFalse(from_sales)


class FastMovingSkusTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = make_session()
        self.cache = make_cache()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def ingest(self, rows, file_name="snapshot.xlsx"):
        return analytics_service.ingest_snapshots(self.db, file_name, rows, cache=self.cache)

    def report(self, **filters):
        return analytics_service.get_fast_moving_skus(self.db, cache=self.cache, **filters)

    def test_heuristic_without_any_sales(self):
        self.ingest([sku_row("SKU-C", {0: 80, 1: 120}, cbm=0.5)])

        report = self.report()
        self.assertFalse(report["summary"]["has_sales_data"])
        [sku] = report["skus"]
        self.assertEqual(sku["avg_qty"], 100.0)
        self.assertEqual(sku["latest_qty"], 120.0)
        self.assertEqual(sku["estimated_daily_consumption"], 10.0)
        self.assertFalse(sku["has_sales_data"])
        self.assertEqual(sku["avg_daily_sales"], 0.0)
        self.assertEqual(sku["days_of_stock"], 12)
        self.assertEqual(sku["stock_status"], "low")
        self.assertEqual(sku["total_cbm"], 50.0)
        self.assertEqual(sku["rank"], 1)

    def test_sales_velocity_drives_days_of_stock(self):
        self.ingest(
            [
                sku_row("SKU-F", {0: 60, 1: 50}),
                sku_row("SKU-SLOW", {0: 500, 1: 500}),
                sku_row("SKU-RETURNED", {0: 90}),
            ]
        )
        analytics_service.record_sales_batch(
            self.db,
            "shipments.csv",
            [
                sale(" sku-f ", 0, 10),
                sale("SKU-F", 1, 15),
                sale("SKU-F", 2, 5),
                sale("SKU-RETURNED", 0, 0),
            ],
            cache=self.cache,
        )

        report = self.report()
        self.assertTrue(report["summary"]["has_sales_data"])
        self.assertEqual([sku["item"] for sku in report["skus"]], ["SKU-F"])
        [sku] = report["skus"]
        self.assertTrue(sku["has_sales_data"])
        self.assertEqual(sku["total_sold_qty"], 30.0)
        self.assertEqual(sku["sales_days"], 3)
        self.assertEqual(sku["avg_daily_sales"], 10.0)
        self.assertEqual(sku["latest_qty"], 50.0)
        self.assertEqual(sku["days_of_stock"], 5)
        self.assertEqual(sku["stock_status"], "critical")

    def test_threshold_ordering_and_limit(self):
        self.ingest(
            [
                sku_row("SKU-1", {0: 60}),
                sku_row("SKU-2", {0: 300}),
                sku_row("SKU-3", {0: 49}),
                sku_row("SKU-4", {0: 120}),
            ]
        )

        report = self.report(limit=2)
        self.assertEqual([sku["item"] for sku in report["skus"]], ["SKU-2", "SKU-4"])
        self.assertEqual([sku["rank"] for sku in report["skus"]], [1, 2])
        self.assertEqual(report["summary"]["total_skus"], 3)
        self.assertEqual(report["summary"]["returned"], 2)
        self.assertEqual(sum(report["summary"]["status_counts"].values()), 3)

        lowered = self.report(min_avg_qty=0)
        self.assertEqual(lowered["summary"]["total_skus"], 4)

    def test_latest_quantity_spans_batches(self):
        self.ingest([sku_row("SKU-L", {0: 100, 1: 90})], "week1.xlsx")
        self.ingest([sku_row("SKU-L", {5: 70})], "week2.xlsx")

        report = self.report()
        self.assertEqual(len(report["skus"]), 2)
        self.assertEqual({sku["latest_qty"] for sku in report["skus"]}, {70.0})

    def test_same_date_newer_batch_wins(self):
        self.ingest([sku_row("SKU-L", {0: 100})], "first.xlsx")
        self.ingest([sku_row("SKU-L", {0: 60})], "second.xlsx")

        report = self.report()
        self.assertEqual({sku["latest_qty"] for sku in report["skus"]}, {60.0})

    def test_warehouse_and_category_filters(self):
        self.ingest(
            [
                sku_row("SKU-K", {0: 100}, item_group="Kitchen", warehouse="WH-1"),
                sku_row("SKU-E", {0: 100}, item_group="Edel", warehouse="WH-2"),
            ]
        )

        self.assertEqual([s["item"] for s in self.report(warehouse="WH-2")["skus"]], ["SKU-E"])
        self.assertEqual([s["item"] for s in self.report(category="Home & Kitchen")["skus"]], ["SKU-K"])
        self.assertEqual(len(self.report(category="ALL")["skus"]), 2)
        self.assertEqual(self.report()["filters"]["available_warehouses"], ["WH-1", "WH-2"])

    def test_total_rows_are_not_skus(self):
        self.ingest([sku_row("Total", {0: 1000}, total=True)])
        self.assertEqual(self.report()["skus"], [])

    def test_errors(self):
        with self.assertRaises(NotFoundError):
            self.report()
        self.ingest([sku_row("SKU-1", {0: 60})])
        for filters in ({"limit": 0}, {"limit": 100000}, {"min_avg_qty": -1}, {"category": "nope"}):
            with self.subTest(filters=filters):
                with self.assertRaises(ValidationError):
                    self.report(**filters)


if __name__ == "__main__":
    unittest.main()
