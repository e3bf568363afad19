"""Strategy for the Walmart grocery category."""

from .base import BrowserStrategy, ProductSelectors


class WalmartStrategy(BrowserStrategy):
    """Scrape food listings from walmart.com."""

    name = "walmart"
    display_name = "Walmart"
    url = "https://www.walmart.com/browse/food"
    content_marker = '[data-testid="item-stack"]'
    selectors = ProductSelectors(
        container='[data-testid="item-stack"]',
        name='[data-automation-id="product-title"]',
        price='[itemprop="price"]',
    )
