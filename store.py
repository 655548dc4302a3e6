"""Article document store: SQLite for deployment, in-memory for development and tests."""
import os
import secrets
import sqlite3
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from log import get_logger

logger = get_logger("langstudy.store")

# --- Config ---
STORE_BACKEND = os.environ.get("LANGSTUDY_STORE", "sqlite")
DB_PATH = Path(os.environ.get("LANGSTUDY_DB_PATH", str(Path(__file__).parent / "langstudy.db")))

ID_LENGTH = 20
_ID_ALPHABET = string.ascii_letters + string.digits


def auto_id() -> str:
    """20-character alphanumeric document id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))


class ArticleStore(Protocol):
    backend: str

    def new_id(self) -> str: ...

    def get_by_id(self, article_id: str) -> Optional[dict]: ...

    def put(self, article_id: str, record: dict) -> None: ...


class MemoryArticleStore:
    backend = "memory"

    def __init__(self):
        self._docs: dict = {}

    def __len__(self) -> int:
        return len(self._docs)

    def new_id(self) -> str:
        while True:
            article_id = auto_id()
            if article_id not in self._docs:
                return article_id

    def get_by_id(self, article_id: str) -> Optional[dict]:
        record = self._docs.get(article_id)
        return dict(record) if record is not None else None

    def put(self, article_id: str, record: dict) -> None:
        self._docs[article_id] = dict(record)


class SQLiteArticleStore:
    backend = "sqlite"

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = Path(db_path)

    def get_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init(self):
        conn = self.get_db()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS articles (
                id TEXT PRIMARY KEY,
                uid TEXT NOT NULL,
                topic TEXT NOT NULL,
                source_lang TEXT NOT NULL,
                target_lang TEXT NOT NULL,
                text TEXT NOT NULL,
                translation TEXT,
                created_at REAL NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_articles_uid ON articles (uid);
        """)
        conn.close()
        logger.info("Article table ready", extra={"component": "store", "detail": str(self.db_path)})

    def new_id(self) -> str:
        conn = self.get_db()
        try:
            while True:
                article_id = auto_id()
                row = conn.execute("SELECT 1 FROM articles WHERE id = ?", (article_id,)).fetchone()
                if row is None:
                    return article_id
        finally:
            conn.close()

    def get_by_id(self, article_id: str) -> Optional[dict]:
        conn = self.get_db()
        try:
            row = conn.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return {
            "id": row["id"],
            "uid": row["uid"],
            "topic": row["topic"],
            "sourceLang": row["source_lang"],
            "targetLang": row["target_lang"],
            "text": row["text"],
            "translation": row["translation"],
            "createdAt": datetime.fromtimestamp(row["created_at"], tz=timezone.utc),
        }

    def put(self, article_id: str, record: dict) -> None:
        conn = self.get_db()
        try:
            conn.execute(
                "INSERT INTO articles (id, uid, topic, source_lang, target_lang, text, translation, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET uid = excluded.uid, topic = excluded.topic, "
                "source_lang = excluded.source_lang, target_lang = excluded.target_lang, "
                "text = excluded.text, translation = excluded.translation, created_at = excluded.created_at",
                (
                    article_id, record["uid"], record["topic"], record["sourceLang"],
                    record["targetLang"], record["text"], record.get("translation"),
                    record["createdAt"].timestamp(),
                ),
            )
            conn.commit()
        finally:
            conn.close()


def default_store() -> ArticleStore:
    if STORE_BACKEND == "memory":
        return MemoryArticleStore()
    if STORE_BACKEND != "sqlite":
        raise ValueError(f"Unknown LANGSTUDY_STORE: {STORE_BACKEND}")
    store = SQLiteArticleStore(DB_PATH)
    store.init()
    return store
