from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.engine.url import make_url

from app import config
from app.exceptions import ConfigurationError


def build_engine(database_url: str):
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "postgresql":
        # bounds a hung status pass on the server side
        connect_args["options"] = f"-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}"

    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,          # helps recycle stale connections
        pool_size=5,
        max_overflow=10,
        pool_timeout=config.DB_POOL_TIMEOUT_SECONDS,
    )


engine = build_engine(config.DATABASE_URL) if config.DATABASE_URL else None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def open_session() -> Session:
    if engine is None:
        raise ConfigurationError("DATABASE_URL is not set; cannot connect to the coupon database")
    return SessionLocal()


def get_db():
    db = open_session()
    try:
        yield db
    finally:
        db.close()
