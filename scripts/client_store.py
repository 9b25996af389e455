"""
RainCheck: client record store

Persists the contact details captured before an assessment. Write-only from
the application's point of view: records are inserted and never read back by
the assessment engine.

The SQL is plain SQLAlchemy Core so it runs on PostgreSQL in production and
SQLite in tests.
"""

import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from rwh_models import ClientRecord

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
DB_NAME = "raincheck"
DB_USER = os.environ.get("PGUSER", os.environ.get("USER", "postgres"))
DB_HOST = os.environ.get("PGHOST", "localhost")
DB_PORT = os.environ.get("PGPORT", "5432")
DB_PASSWORD = os.environ.get("PGPASSWORD", "")
CLIENTS_TABLE = "rwh_clients"


def _conn_string(dbname=None):
    # DATABASE_URL wins (hosted deployments)
    db_url = os.environ.get("DATABASE_URL")
    if db_url:
        # SQLAlchemy requires postgresql://
        if db_url.startswith("postgres://"):
            db_url = db_url.replace("postgres://", "postgresql://", 1)
        return db_url
    db = dbname or os.environ.get("PGDATABASE", DB_NAME)
    if DB_PASSWORD:
        return f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{db}"
    return f"postgresql://{DB_USER}@{DB_HOST}:{DB_PORT}/{db}"


_engine = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(_conn_string(), pool_pre_ping=True)
    return _engine


def ensure_schema(engine: Engine) -> None:
    """Create the clients table if it does not exist (idempotent)."""
    id_column = (
        "BIGSERIAL PRIMARY KEY"
        if engine.dialect.name == "postgresql"
        else "INTEGER PRIMARY KEY AUTOINCREMENT"
    )
    with engine.begin() as conn:
        conn.execute(text(f"""
            CREATE TABLE IF NOT EXISTS {CLIENTS_TABLE} (
                id              {id_column},
                name            VARCHAR(200) NOT NULL,
                phone           VARCHAR(40),
                email           VARCHAR(255),
                address         VARCHAR(500),
                submission_time VARCHAR(40) NOT NULL
            )
        """))
    log.info("Table %s ready", CLIENTS_TABLE)


def save_client(engine: Engine, record: ClientRecord) -> int:
    """Insert a client record and return its new id."""
    with engine.begin() as conn:
        new_id = conn.execute(
            text(f"""
                INSERT INTO {CLIENTS_TABLE} (name, phone, email, address, submission_time)
                VALUES (:name, :phone, :email, :address, :submission_time)
                RETURNING id
            """),
            {
                "name": record.name,
                "phone": record.phone,
                "email": record.email,
                "address": record.address,
                "submission_time": record.submission_time.isoformat(),
            },
        ).scalar_one()
    log.info("Saved client record %s", new_id)
    return int(new_id)
