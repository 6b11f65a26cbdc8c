"""SQLite-backed token store"""
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any, Iterable, Optional

from .config import DEFAULT_DB_PATH
from .errors import TokenStoreError, TokenNotFoundError
from .models import TokenMetadata, TokenRecord

# Keep IN (...) lists under SQLite's bound parameter limit
LOOKUP_CHUNK_SIZE = 500


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TokenStore:
    """Persisted token rows keyed by mint address"""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """
        Initialize token store

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = None
        self._initialize_db()

    def _initialize_db(self):
        """Initialize database schema"""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tokens (
                address TEXT PRIMARY KEY,
                symbol TEXT,
                launch_date TEXT,
                category TEXT,
                ath REAL,
                ath_last24hrs REAL,
                name TEXT,
                description TEXT,
                image_uri TEXT,
                twitter TEXT,
                website TEXT,
                telegram TEXT,
                metadata_json TEXT,
                enriched INTEGER DEFAULT 0,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_launch_date ON tokens (launch_date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_enriched ON tokens (enriched)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_symbol ON tokens (symbol)")

        self.conn.commit()

    def insert_tokens(self, tokens: Iterable[Dict[str, Any]]) -> int:
        """
        Insert new token rows in one transaction

        Existing addresses are left untouched.

        Args:
            tokens: Dicts with address, symbol, launch_date, category,
                ath and ath_last24hrs

        Returns:
            Number of rows inserted
        """
        rows = [
            (
                token['address'],
                token.get('symbol'),
                token.get('launch_date'),
                token.get('category'),
                token.get('ath'),
                token.get('ath_last24hrs'),
            )
            for token in tokens
        ]

        try:
            with self.conn:
                cursor = self.conn.executemany("""
                    INSERT OR IGNORE INTO tokens
                    (address, symbol, launch_date, category, ath, ath_last24hrs)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, rows)
        except sqlite3.Error as e:
            raise TokenStoreError(f"Failed to insert tokens: {e}") from e

        return cursor.rowcount

    def get_existing_addresses(self, addresses: List[str]) -> List[str]:
        """Return the subset of addresses that already have a row"""
        existing = []
        for i in range(0, len(addresses), LOOKUP_CHUNK_SIZE):
            chunk = addresses[i:i + LOOKUP_CHUNK_SIZE]
            placeholders = ",".join("?" for _ in chunk)
            cursor = self.conn.execute(
                f"SELECT address FROM tokens WHERE address IN ({placeholders})",
                chunk
            )
            existing.extend(row['address'] for row in cursor.fetchall())
        return existing

    def get_tokens_page(
        self,
        limit: int,
        offset: int = 0,
        only_unenriched: bool = False
    ) -> List[TokenRecord]:
        """
        Read a page of tokens, oldest launch first

        Args:
            limit: Page size
            offset: Rows to skip
            only_unenriched: Restrict to rows not yet enriched

        Returns:
            List of TokenRecord
        """
        query = "SELECT address, launch_date, symbol FROM tokens"
        if only_unenriched:
            query += " WHERE enriched = 0"
        query += " ORDER BY launch_date ASC, address ASC LIMIT ? OFFSET ?"

        try:
            cursor = self.conn.execute(query, (limit, offset))
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise TokenStoreError(f"Failed to read tokens: {e}") from e

        return [
            TokenRecord(
                address=row['address'],
                launch_date=row['launch_date'],
                symbol=row['symbol'],
            )
            for row in rows
        ]

    def update_token_metadata(self, address: str, metadata: TokenMetadata):
        """
        Overwrite a token's enrichment fields

        Raises:
            TokenNotFoundError: if no row exists for the address
            TokenStoreError: if the write fails
        """
        try:
            with self.conn:
                cursor = self.conn.execute("""
                    UPDATE tokens SET
                        name = ?,
                        symbol = ?,
                        description = ?,
                        image_uri = ?,
                        twitter = ?,
                        website = ?,
                        telegram = ?,
                        metadata_json = ?,
                        enriched = 1,
                        updated_at = ?
                    WHERE address = ?
                """, (
                    metadata.name,
                    metadata.symbol,
                    metadata.description,
                    metadata.image,
                    metadata.twitter,
                    metadata.website,
                    metadata.telegram,
                    json.dumps(metadata.socials_json()),
                    _utc_now(),
                    address
                ))
        except sqlite3.Error as e:
            raise TokenStoreError(f"Failed to update {address}: {e}") from e

        if cursor.rowcount == 0:
            raise TokenNotFoundError(address)

    def get_token(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Get a token row

        Returns:
            Row as a dict with metadata_json decoded, or None
        """
        cursor = self.conn.execute("SELECT * FROM tokens WHERE address = ?", (address,))
        row = cursor.fetchone()
        if row is None:
            return None

        token = dict(row)
        if token.get('metadata_json'):
            try:
                token['metadata_json'] = json.loads(token['metadata_json'])
            except (json.JSONDecodeError, TypeError):
                pass
        return token

    def get_stats(self) -> Dict[str, Any]:
        """Get enrichment progress statistics"""
        cursor = self.conn.execute("""
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN enriched = 1 THEN 1 ELSE 0 END), 0) AS enriched
            FROM tokens
        """)
        row = cursor.fetchone()
        total = row['total']
        enriched = row['enriched']

        return {
            'total': total,
            'enriched': enriched,
            'remaining': total - enriched,
            'progress': f"{(enriched / total * 100):.2f}" if total > 0 else "0.00",
        }

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None
