import tempfile
import unittest
from pathlib import Path

from pricetracker.db import PriceDatabase
from pricetracker.models import RUN_COMPLETED, RUN_FAILED, RawItem
from pricetracker.resolver import ProductResolver


class TestPriceDatabase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = PriceDatabase(db_path=Path(self._tmp.name) / "test.db")
        self.retailer_id = self.db.add_retailer("Walmart", website="https://www.walmart.com")

    def tearDown(self):
        self._tmp.cleanup()

    def test_inactive_retailer_is_hidden_from_active_lookup(self):
        self.assertIsNotNone(self.db.get_active_retailer(self.retailer_id))
        self.db.set_retailer_active(self.retailer_id, False)
        self.assertIsNone(self.db.get_active_retailer(self.retailer_id))
        self.assertFalse(self.db.get_retailer(self.retailer_id).is_active)
        self.assertEqual(self.db.get_active_retailers(), [])

    def test_find_product_by_name_is_case_insensitive_and_exact(self):
        product_id = self.db.create_product("Great Value Milk", "Great", None, "each")
        self.assertEqual(self.db.find_product_by_name("great value MILK")["id"], product_id)
        self.assertIsNone(self.db.find_product_by_name("Great Value"))
        self.assertIsNone(self.db.find_product_by_name("Great Value Milk%"))

    def test_duplicate_names_resolve_to_oldest_product(self):
        first = self.db.create_product("Eggs", "Eggs", None, "each")
        self.db.create_product("EGGS", "EGGS", None, "each")
        self.assertEqual(self.db.find_product_by_name("eggs")["id"], first)

    def test_record_price_upserts_and_appends_history(self):
        product_id = self.db.create_product("Bread", "Bread", None, "each")
        first_id = self.db.record_price(product_id, self.retailer_id, 2.99, "2026-01-01T00:00:00+00:00")
        second_id = self.db.record_price(product_id, self.retailer_id, 3.49, "2026-01-02T00:00:00+00:00")

        self.assertEqual(first_id, second_id)
        current = self.db.get_product_price(product_id, self.retailer_id)
        self.assertEqual(current["price"], 3.49)
        self.assertEqual(current["last_updated"], "2026-01-02T00:00:00+00:00")

        history = self.db.get_price_history(product_id, self.retailer_id)
        self.assertEqual([h["price"] for h in history], [2.99, 3.49])
        self.assertEqual(history[-1]["price"], current["price"])

    def test_finished_run_cannot_be_finished_again(self):
        run = self.db.create_scrape_run(self.retailer_id, "2026-01-01T00:00:00+00:00")
        self.assertEqual(run.status, "started")

        finished = self.db.finish_scrape_run(
            run.id, RUN_COMPLETED, "2026-01-01T00:01:00+00:00", products_scraped=3
        )
        self.assertEqual(finished.status, RUN_COMPLETED)
        self.assertEqual(finished.products_scraped, 3)

        with self.assertRaises(ValueError):
            self.db.finish_scrape_run(run.id, RUN_FAILED, "2026-01-01T00:02:00+00:00")
        self.assertEqual(self.db.get_scrape_run(run.id).status, RUN_COMPLETED)

    def test_scrape_run_stats(self):
        run = self.db.create_scrape_run(self.retailer_id, "2026-01-01T00:00:00+00:00")
        self.db.finish_scrape_run(run.id, RUN_FAILED, "2026-01-01T00:01:00+00:00", error_message="x")
        self.db.create_scrape_run(self.retailer_id, "2026-01-01T00:02:00+00:00")

        stats = self.db.get_scrape_run_stats()
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["failed"], 1)
        self.assertEqual(stats["running"], 1)
        self.assertEqual(len(self.db.get_scrape_runs(status=RUN_FAILED)), 1)


class TestProductResolver(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = PriceDatabase(db_path=Path(self._tmp.name) / "test.db")
        self.retailer_id = self.db.add_retailer("Target", website="https://www.target.com")
        self.resolver = ProductResolver(self.db)

    def tearDown(self):
        self._tmp.cleanup()

    async def test_creates_product_on_first_sighting(self):
        item = RawItem(
            name="Good & Gather Large Eggs",
            price=3.19,
            image_url="https://target.scene7.com/eggs.jpg",
            retailer="Target",
        )
        price_id = await self.resolver.upsert(item, self.retailer_id)

        product = self.db.find_product_by_name("good & gather large eggs")
        self.assertEqual(product["brand"], "Good")
        self.assertEqual(product["unit"], "each")
        self.assertEqual(product["image_url"], "https://target.scene7.com/eggs.jpg")

        current = self.db.get_product_price(product["id"], self.retailer_id)
        self.assertEqual(current["id"], price_id)
        self.assertEqual(current["price"], 3.19)
        self.assertTrue(current["availability"])
        self.assertTrue(current["in_stock"])

    async def test_reuses_existing_product_case_insensitively(self):
        await self.resolver.upsert(RawItem("Whole Milk", 3.48, None, "Target"), self.retailer_id)
        await self.resolver.upsert(RawItem("WHOLE MILK", 3.48, None, "Target"), self.retailer_id)

        stats = self.db.get_stats()
        self.assertEqual(stats["products"], 1)
        self.assertEqual(stats["product_prices"], 1)
        self.assertEqual(stats["price_history"], 2)

    async def test_accented_names_match_case_insensitively(self):
        await self.resolver.upsert(RawItem("Jalapeño Peppers", 0.12, None, "Target"), self.retailer_id)
        await self.resolver.upsert(RawItem("JALAPEÑO PEPPERS", 0.15, None, "Target"), self.retailer_id)

        stats = self.db.get_stats()
        self.assertEqual(stats["products"], 1)
        self.assertEqual(stats["product_prices"], 1)
        self.assertEqual(stats["price_history"], 2)

        product = self.db.find_product_by_name("jalapeño peppers")
        self.assertEqual(product["name"], "Jalapeño Peppers")
        self.assertEqual(self.db.get_product_price(product["id"], self.retailer_id)["price"], 0.15)

    async def test_unchanged_price_still_appends_history(self):
        item = RawItem("Bananas", 0.25, None, "Target")
        await self.resolver.upsert(item, self.retailer_id)
        await self.resolver.upsert(item, self.retailer_id)

        product = self.db.find_product_by_name("Bananas")
        history = self.db.get_price_history(product["id"], self.retailer_id)
        self.assertEqual([h["price"] for h in history], [0.25, 0.25])

    async def test_configured_default_unit(self):
        resolver = ProductResolver(self.db, default_unit="lb")
        await resolver.upsert(RawItem("Gala Apples", 1.49, None, "Target"), self.retailer_id)
        self.assertEqual(self.db.find_product_by_name("gala apples")["unit"], "lb")

    def test_derive_brand(self):
        self.assertEqual(ProductResolver.derive_brand("Kraft  Mac & Cheese"), "Kraft")
        self.assertIsNone(ProductResolver.derive_brand("   "))
