import logging
from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock

from sqlalchemy import create_engine, exc, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.core import config
from backend.core.errors import ResourceUnavailableError


logger = logging.getLogger(__name__)

Base = declarative_base()

SUPPORTING_INDEXES = (
    'CREATE INDEX IF NOT EXISTS idx_events_date ON events(date)',
    'CREATE INDEX IF NOT EXISTS idx_rsvps_user_id ON rsvps(user_id)',
    'CREATE INDEX IF NOT EXISTS idx_rsvps_event_id ON rsvps(event_id)',
    'CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)',
)


def is_unavailable(error: BaseException) -> bool:
    """True for pool exhaustion and lost connections, not for failing statements."""
    if isinstance(error, exc.TimeoutError):
        return True
    return isinstance(error, exc.DBAPIError) and error.connection_invalidated


def build_engine_options(
    database_url: str,
    pool_size: int = config.DB_POOL_SIZE,
    pool_timeout: float = config.DB_POOL_TIMEOUT_SECONDS,
) -> dict:
    url = make_url(database_url)
    options: dict = {'echo': config.DB_ECHO}

    if url.get_backend_name() == 'sqlite':
        options['connect_args'] = {'check_same_thread': False}
        if url.database in (None, '', ':memory:'):
            # Every session must see the same in-memory database.
            options['poolclass'] = StaticPool
            return options

    options.update(
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
    )
    return options


class Database:
    """Storage handle shared by the services.

    Owns the engine and its bounded connection pool. Services open a scoped
    session per operation with :meth:`session`.
    """

    def __init__(self, database_url: str = config.DATABASE_URL, **engine_options):
        options = build_engine_options(database_url)
        options.update(engine_options)
        self.engine = create_engine(database_url, **options)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        self._schema_lock = Lock()
        self._schema_checked = False

    def ensure_schema(self) -> None:
        if self._schema_checked:
            return

        with self._schema_lock:
            if self._schema_checked:
                return

            from backend.models import event, rsvp, user  # noqa: F401

            Base.metadata.create_all(bind=self.engine)
            with self.engine.begin() as connection:
                for statement in SUPPORTING_INDEXES:
                    connection.execute(text(statement))

            self._schema_checked = True

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception as error:
            db.rollback()
            if is_unavailable(error):
                logger.warning('Database unavailable: %s', error)
                raise ResourceUnavailableError() from error
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def paginate(query, page: int = 1, limit: int | None = None):
    if limit is None:
        return query
    return query.offset((max(page, 1) - 1) * limit).limit(limit)
