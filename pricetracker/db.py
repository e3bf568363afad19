"""SQLite database operations for the price catalog and scrape runs."""

from __future__ import annotations

import sqlite3
from datetime import datetime, UTC
from pathlib import Path

from .models import RUN_STARTED, Retailer, ScrapeRun


class PriceDatabase:
    """SQLite store for retailers, products, prices, price history and scrape runs.

    Every public method opens its own connection, so calls are independent and
    safe to run from worker threads.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or Path(__file__).parent.parent / "output" / "prices.db"
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS retailers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    website TEXT,
                    logo_url TEXT,
                    is_active BOOLEAN NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    name_key TEXT NOT NULL,
                    brand TEXT,
                    image_url TEXT,
                    unit TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            # Lookups go through the casefolded name so non-ASCII letters match too
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_products_name_key
                ON products (name_key)
            """)

            # Current price per product and retailer
            conn.execute("""
                CREATE TABLE IF NOT EXISTS product_prices (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL,
                    retailer_id INTEGER NOT NULL,
                    price REAL NOT NULL,
                    original_price REAL,
                    discount_percentage REAL,
                    availability BOOLEAN NOT NULL DEFAULT 1,
                    in_stock BOOLEAN NOT NULL DEFAULT 1,
                    last_updated TEXT NOT NULL,
                    FOREIGN KEY (product_id) REFERENCES products(id),
                    FOREIGN KEY (retailer_id) REFERENCES retailers(id),
                    UNIQUE(product_id, retailer_id)
                )
            """)

            # Append-only price observations
            conn.execute("""
                CREATE TABLE IF NOT EXISTS price_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL,
                    retailer_id INTEGER NOT NULL,
                    price REAL NOT NULL,
                    recorded_at TEXT NOT NULL,
                    FOREIGN KEY (product_id) REFERENCES products(id),
                    FOREIGN KEY (retailer_id) REFERENCES retailers(id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_price_history_pair_time
                ON price_history (product_id, retailer_id, recorded_at)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS scrape_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    retailer_id INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    started_at TEXT NOT NULL,
                    completed_at TEXT,
                    products_scraped INTEGER DEFAULT 0,
                    errors_count INTEGER DEFAULT 0,
                    error_message TEXT,
                    duration_seconds REAL,
                    FOREIGN KEY (retailer_id) REFERENCES retailers(id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_scrape_runs_retailer
                ON scrape_runs (retailer_id, started_at DESC)
            """)

            conn.commit()

    # --- Retailers ---

    def add_retailer(
        self,
        name: str,
        website: str | None = None,
        logo_url: str | None = None,
        is_active: bool = True,
    ) -> int:
        """Insert a retailer and return its ID."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO retailers (name, website, logo_url, is_active, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (name, website, logo_url, int(is_active), datetime.now(UTC).isoformat()),
            )
            conn.commit()
            return cursor.lastrowid

    def set_retailer_active(self, retailer_id: int, is_active: bool) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE retailers SET is_active = ? WHERE id = ?",
                (int(is_active), retailer_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def get_retailer(self, retailer_id: int) -> Retailer | None:
        """Get a retailer by ID regardless of its active flag."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM retailers WHERE id = ?",
                (retailer_id,),
            ).fetchone()
            return Retailer.from_row(dict(row)) if row else None

    def get_active_retailer(self, retailer_id: int) -> Retailer | None:
        """Get a retailer by ID, or None if missing or inactive."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM retailers WHERE id = ? AND is_active = 1",
                (retailer_id,),
            ).fetchone()
            return Retailer.from_row(dict(row)) if row else None

    def get_active_retailers(self) -> list[Retailer]:
        with self._connect() as conn:
            cursor = conn.execute("SELECT * FROM retailers WHERE is_active = 1 ORDER BY name")
            return [Retailer.from_row(dict(row)) for row in cursor.fetchall()]

    # --- Products and prices ---

    @staticmethod
    def name_key(name: str) -> str:
        """Normalize a product name for case-insensitive matching."""
        return name.casefold()

    def find_product_by_name(self, name: str) -> dict | None:
        """Find a product by case-insensitive exact name.

        When several products share the name, the oldest one wins.
        """
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM products
                WHERE name_key = ?
                ORDER BY id ASC
                LIMIT 1
                """,
                (self.name_key(name),),
            ).fetchone()
            return dict(row) if row else None

    def create_product(
        self,
        name: str,
        brand: str | None,
        image_url: str | None,
        unit: str | None,
    ) -> int:
        """Create a product and return its ID."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO products (name, name_key, brand, image_url, unit, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, self.name_key(name), brand, image_url, unit, datetime.now(UTC).isoformat()),
            )
            conn.commit()
            return cursor.lastrowid

    def record_price(self, product_id: int, retailer_id: int, price: float, recorded_at: str) -> int:
        """Upsert the current price and append a history record.

        Both writes share one transaction so the current price always matches
        the latest history entry. Returns the product_prices row ID.
        """
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO product_prices
                    (product_id, retailer_id, price, availability, in_stock, last_updated)
                VALUES (?, ?, ?, 1, 1, ?)
                ON CONFLICT (product_id, retailer_id) DO UPDATE SET
                    price = excluded.price,
                    availability = excluded.availability,
                    in_stock = excluded.in_stock,
                    last_updated = excluded.last_updated
                RETURNING id
                """,
                (product_id, retailer_id, price, recorded_at),
            )
            price_id = cursor.fetchall()[0][0]

            conn.execute(
                """
                INSERT INTO price_history (product_id, retailer_id, price, recorded_at)
                VALUES (?, ?, ?, ?)
                """,
                (product_id, retailer_id, price, recorded_at),
            )
            conn.commit()
            return price_id

    def get_product_price(self, product_id: int, retailer_id: int) -> dict | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM product_prices WHERE product_id = ? AND retailer_id = ?",
                (product_id, retailer_id),
            ).fetchone()
            return dict(row) if row else None

    def get_price_history(self, product_id: int, retailer_id: int | None = None) -> list[dict]:
        """Get price history for a product, oldest first."""
        with self._connect() as conn:
            query = "SELECT * FROM price_history WHERE product_id = ?"
            params: list = [product_id]
            if retailer_id is not None:
                query += " AND retailer_id = ?"
                params.append(retailer_id)
            query += " ORDER BY recorded_at ASC, id ASC"
            return [dict(row) for row in conn.execute(query, params).fetchall()]

    def get_stats(self) -> dict:
        """Get row counts for the catalog tables."""
        with sqlite3.connect(self.db_path) as conn:
            stats = {}
            for table in ("retailers", "products", "product_prices", "price_history", "scrape_runs"):
                stats[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            return stats

    # --- Scrape Runs ---

    def create_scrape_run(self, retailer_id: int, started_at: str) -> ScrapeRun:
        """Create a new scrape run record in the started state."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO scrape_runs (retailer_id, status, started_at, products_scraped, errors_count)
                VALUES (?, ?, ?, 0, 0)
                """,
                (retailer_id, RUN_STARTED, started_at),
            )
            conn.commit()
            return ScrapeRun(
                id=cursor.lastrowid,
                retailer_id=retailer_id,
                status=RUN_STARTED,
                started_at=started_at,
            )

    def finish_scrape_run(
        self,
        run_id: int,
        status: str,
        completed_at: str,
        products_scraped: int = 0,
        errors_count: int = 0,
        error_message: str | None = None,
        duration_seconds: float | None = None,
    ) -> ScrapeRun:
        """Finalize a started scrape run.

        Raises ValueError if the run does not exist or was already finalized.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                UPDATE scrape_runs
                SET status = ?, completed_at = ?, products_scraped = ?,
                    errors_count = ?, error_message = ?, duration_seconds = ?
                WHERE id = ? AND status = ?
                RETURNING *
                """,
                (
                    status,
                    completed_at,
                    products_scraped,
                    errors_count,
                    error_message,
                    duration_seconds,
                    run_id,
                    RUN_STARTED,
                ),
            ).fetchall()
            conn.commit()
            if not rows:
                raise ValueError(f"Scrape run {run_id} is missing or already finished")
            return ScrapeRun.from_row(dict(rows[0]))

    def get_scrape_run(self, run_id: int) -> ScrapeRun | None:
        """Get a specific scrape run by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM scrape_runs WHERE id = ?",
                (run_id,),
            ).fetchone()
            return ScrapeRun.from_row(dict(row)) if row else None

    def get_scrape_runs(
        self,
        retailer_id: int | None = None,
        limit: int = 100,
        status: str | None = None,
    ) -> list[ScrapeRun]:
        """Get scrape run history, optionally filtered by retailer and status."""
        with self._connect() as conn:
            query = "SELECT * FROM scrape_runs WHERE 1=1"
            params: list = []

            if retailer_id is not None:
                query += " AND retailer_id = ?"
                params.append(retailer_id)

            if status:
                query += " AND status = ?"
                params.append(status)

            query += " ORDER BY started_at DESC, id DESC LIMIT ?"
            params.append(limit)

            cursor = conn.execute(query, params)
            return [ScrapeRun.from_row(dict(row)) for row in cursor.fetchall()]

    def get_scrape_run_stats(self) -> dict:
        """Get statistics about scrape runs."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT status, COUNT(*) FROM scrape_runs GROUP BY status")
            counts = {"started": 0, "completed": 0, "failed": 0}
            for status, count in cursor.fetchall():
                counts[status] = count

            total = sum(counts.values())
            return {
                "total": total,
                "successful": counts["completed"],
                "failed": counts["failed"],
                "running": counts["started"],
                "success_rate": (counts["completed"] / total * 100) if total > 0 else 0,
            }
