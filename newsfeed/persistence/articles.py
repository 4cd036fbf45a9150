"""Article Repository - durable article storage backed by SQLite.

Acts as the document store behind the persistent cache backend:
insert rows, query them by keyword or flag, delete rows by age.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from ..data.base import Article, parse_timestamp
from ..utils import get_logger

logger = get_logger(__name__)

FLAG_FIELDS = ("read", "favorite")

_COLUMNS = "id, url, image, keyword, title, source, description, published_at, read, favorite, cached_at, provider"


class ArticleRepository:
    """SQLite-backed article rows."""

    def __init__(self, db_path):
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _init_db(self):
        """Initialize articles schema."""
        conn = self._connect()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS articles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT,
                image TEXT,
                keyword TEXT,
                title TEXT,
                source TEXT,
                description TEXT,
                published_at TEXT,
                read INTEGER NOT NULL DEFAULT 0,
                favorite INTEGER NOT NULL DEFAULT 0,
                cached_at REAL NOT NULL,
                provider TEXT
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_articles_keyword ON articles(keyword)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_articles_cached_at ON articles(cached_at)")
        conn.commit()
        conn.close()

    @staticmethod
    def _row_to_article(row) -> Article:
        return Article(
            id=row[0],
            url=row[1],
            image=row[2],
            keyword=row[3],
            title=row[4],
            source=row[5],
            description=row[6],
            published_at=parse_timestamp(row[7]),
            read=bool(row[8]),
            favorite=bool(row[9]),
            cached_at=datetime.fromtimestamp(row[10], tz=timezone.utc),
            provider=row[11]
        )

    def insert_many(self, articles: Sequence[Article]) -> List[Article]:
        """Insert articles and return them as stored (with ids).

        Every article must already carry its keyword and cached_at.
        """
        conn = self._connect()
        stored = []
        try:
            for article in articles:
                if article.keyword is None or article.cached_at is None:
                    raise ValueError("durable articles need keyword and cached_at")
                cursor = conn.execute(
                    """INSERT INTO articles
                       (url, image, keyword, title, source, description, published_at,
                        read, favorite, cached_at, provider)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        article.url,
                        article.image,
                        article.keyword,
                        article.title,
                        article.source,
                        article.description,
                        article.published_at.isoformat() if article.published_at else None,
                        int(article.read),
                        int(article.favorite),
                        article.cached_at.timestamp(),
                        article.provider
                    )
                )
                stored.append(self._get(conn, cursor.lastrowid))
            conn.commit()
        finally:
            conn.close()

        logger.debug(f"Inserted {len(stored)} article rows")
        return stored

    def _get(self, conn: sqlite3.Connection, article_id: int) -> Optional[Article]:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM articles WHERE id = ?", (article_id,)
        ).fetchone()
        return self._row_to_article(row) if row else None

    def find_by_keyword(self, keyword: str) -> List[Article]:
        """All rows stored under keyword, in insertion order."""
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE keyword = ? ORDER BY id",
                (keyword,)
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_article(row) for row in rows]

    def find_flagged(self, field: str) -> List[Article]:
        """All rows where the given flag is set."""
        if field not in FLAG_FIELDS:
            raise ValueError(f"Unknown article flag: {field}")
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE {field} = 1 ORDER BY id"
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_article(row) for row in rows]

    def set_flag(self, article_id: int, field: str) -> Optional[Article]:
        """Set a flag on one row; returns the updated row or None."""
        if field not in FLAG_FIELDS:
            raise ValueError(f"Unknown article flag: {field}")
        conn = self._connect()
        try:
            cursor = conn.execute(f"UPDATE articles SET {field} = 1 WHERE id = ?", (article_id,))
            conn.commit()
            if cursor.rowcount == 0:
                return None
            return self._get(conn, article_id)
        finally:
            conn.close()

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete rows cached before cutoff; returns the number removed."""
        conn = self._connect()
        try:
            cursor = conn.execute(
                "DELETE FROM articles WHERE cached_at < ?", (cutoff.timestamp(),)
            )
            conn.commit()
            removed = cursor.rowcount
        finally:
            conn.close()

        if removed:
            logger.info(f"Deleted {removed} article rows cached before {cutoff.isoformat()}")
        return removed
