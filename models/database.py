from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
import logging
import os
import time
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storage/app.db")
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_BASE_DELAY = float(os.getenv("DB_RETRY_BASE_DELAY", "0.05"))

# SQLite precisa check_same_thread=False
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
    echo=False
)


def enable_sqlite_foreign_keys(target_engine):
    """Liga ON DELETE CASCADE / SET NULL no SQLite (desligado por padrão)"""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency para FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(db, operation, attempts=None, base_delay=None):
    """
    Executa operation(db) e faz commit; em falha faz rollback.
    Apenas falhas transitórias de storage (OperationalError: I/O, lock, timeout)
    são repetidas, com backoff exponencial. Erros de domínio sobem na hora.
    """
    attempts = attempts or DB_RETRY_ATTEMPTS
    base_delay = DB_RETRY_BASE_DELAY if base_delay is None else base_delay

    for attempt in range(1, attempts + 1):
        try:
            result = operation(db)
            db.commit()
            return result
        except OperationalError as e:
            db.rollback()
            if attempt >= attempts:
                logger.error("Transação falhou após %d tentativas: %s", attempts, e)
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "Falha transitória de storage (tentativa %d/%d), repetindo em %.2fs: %s",
                attempt, attempts, delay, e
            )
            time.sleep(delay)
        except Exception:
            db.rollback()
            raise
