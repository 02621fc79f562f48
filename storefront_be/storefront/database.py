from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def normalize_database_url(url: str) -> str:
    if not url:
        raise RuntimeError("DATABASE_URL is not set. Provide a Postgres or SQLite URL.")
    # Normalize driver to psycopg (SQLAlchemy 2.x + psycopg3) regardless of incoming scheme
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+" not in url.split("://", 1)[0]:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _register_models() -> None:
    # Ensure all tables are on Base.metadata before create/drop
    import storefront.models.user  # noqa: F401
    import storefront.models.product  # noqa: F401
    import storefront.models.cart  # noqa: F401
    import storefront.models.order  # noqa: F401
    import storefront.models.wishlist  # noqa: F401


class Database:
    """Owns the engine and session factory for one application instance.

    Created by the app factory and kept on ``app.state.database``; request
    handlers get sessions from it through :func:`get_db`.
    """

    def __init__(self, url: str):
        self.url = normalize_database_url(url)
        kwargs = {"pool_pre_ping": True, "future": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(self.url, **kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, future=True)

    def create_all(self) -> None:
        _register_models()
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        _register_models()
        Base.metadata.drop_all(bind=self.engine)

    def session(self):
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
