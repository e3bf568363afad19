import unittest

from pricetracker.scrapers.base import ProductSelectors, extract_items

SELECTORS = ProductSelectors(
    container=".product-card",
    name=".product-title",
    price=".price",
)


class TestExtractItems(unittest.TestCase):
    def test_extracts_name_price_and_image(self):
        html = """
        <div class="product-card">
          <span class="product-title">  Organic
             Bananas </span>
          <span class="price">$0.69</span>
          <img src="/img/bananas.jpg">
        </div>
        """
        items = extract_items(html, SELECTORS, "Corner Market", base_url="https://corner.example/shop")

        self.assertEqual(len(items), 1)
        item = items[0]
        self.assertEqual(item.name, "Organic Bananas")
        self.assertEqual(item.price, 0.69)
        self.assertEqual(item.image_url, "https://corner.example/img/bananas.jpg")
        self.assertEqual(item.retailer, "Corner Market")

    def test_skips_missing_name_or_unparseable_price(self):
        html = """
        <div class="product-card"><span class="product-title">Milk</span><span class="price">N/A</span></div>
        <div class="product-card"><span class="product-title"> </span><span class="price">$1.00</span></div>
        <div class="product-card"><span class="price">$2.00</span></div>
        <div class="product-card"><span class="product-title">Eggs</span></div>
        <div class="product-card"><span class="product-title">Bread</span><span class="price">$2.99</span></div>
        """
        items = extract_items(html, SELECTORS, "Corner Market")

        self.assertEqual([i.name for i in items], ["Bread"])
        self.assertIsNone(items[0].image_url)

    def test_uses_lazy_image_source(self):
        html = """
        <div class="product-card">
          <span class="product-title">Butter</span><span class="price">$4.29</span>
          <img data-src="https://cdn.example/butter.jpg">
        </div>
        """
        items = extract_items(html, SELECTORS, "Corner Market")
        self.assertEqual(items[0].image_url, "https://cdn.example/butter.jpg")

    def test_no_containers(self):
        self.assertEqual(extract_items("<html><body>Closed</body></html>", SELECTORS, "X"), [])
