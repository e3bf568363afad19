"""Strategy for the Target grocery category."""

from .base import BrowserStrategy, ProductSelectors


class TargetStrategy(BrowserStrategy):
    """Scrape grocery listings from target.com."""

    name = "target"
    display_name = "Target"
    url = "https://www.target.com/c/grocery/-/N-5xtg6"
    content_marker = '[data-test="product-details"]'
    selectors = ProductSelectors(
        container='[data-test="product-details"]',
        name='[data-test="product-title"]',
        price='[data-test="current-price"]',
    )
