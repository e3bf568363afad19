"""Exceptions raised by the scraping engine."""


class ScraperError(Exception):
    """Base class for scraping engine errors."""


class RetailerNotFound(ScraperError):
    """The retailer does not exist or is inactive."""

    def __init__(self, retailer_id: int):
        super().__init__(f"Retailer {retailer_id} not found or inactive")
        self.retailer_id = retailer_id


class BrowserLaunchError(ScraperError):
    """The shared browser process could not be started."""


class StrategyError(ScraperError):
    """A whole extraction strategy failed (network, navigation, missing markup)."""


class NavigationTimeout(StrategyError):
    """Loading the retailer page took longer than the navigation timeout."""


class ElementWaitTimeout(StrategyError):
    """The product content marker did not appear in time."""


class StrategyNotImplemented(StrategyError):
    """The retailer has a declared strategy that extracts nothing yet."""
