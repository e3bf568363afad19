"""Map raw items onto catalog products and persist their prices."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, UTC

from .db import PriceDatabase
from .models import RawItem

logger = logging.getLogger(__name__)


class ProductResolver:
    """Resolves raw items to products and records current and historical prices."""

    def __init__(self, db: PriceDatabase, default_unit: str = "each"):
        self.db = db
        self.default_unit = default_unit

    @staticmethod
    def derive_brand(name: str) -> str | None:
        """Use the first word of the product name as its brand."""
        parts = name.split()
        return parts[0] if parts else None

    async def upsert(self, item: RawItem, retailer_id: int) -> int:
        """
        Persist one raw item for a retailer.

        Returns the product_prices row ID. Storage errors propagate to the caller.
        """
        return await asyncio.to_thread(self._upsert_sync, item, retailer_id)

    def _upsert_sync(self, item: RawItem, retailer_id: int) -> int:
        product = self.db.find_product_by_name(item.name)
        if product:
            product_id = product["id"]
        else:
            product_id = self.db.create_product(
                name=item.name,
                brand=self.derive_brand(item.name),
                image_url=item.image_url,
                unit=self.default_unit,
            )
            logger.debug(f"Created product {product_id}: {item.name}")

        recorded_at = datetime.now(UTC).isoformat()
        return self.db.record_price(product_id, retailer_id, item.price, recorded_at)
