"""Database configuration and initialization."""
from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only aliases rowid for INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')

# SQLSTATEs for lock_timeout expiry and deadlock detection (PostgreSQL)
LOCK_FAILURE_SQLSTATES = {'55P03', '40P01'}

# Global engine, session factory and request-scoped session
engine = None
SessionLocal = None
db_session = None


def init_db(app):
    """Initialize database connection."""
    global engine, SessionLocal, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    lock_timeout = app.config.get('LOCK_TIMEOUT_SECONDS', 5)

    if database_uri.startswith('sqlite'):
        engine = create_engine(
            database_uri,
            echo=app.config.get('SQLALCHEMY_ECHO', False),
            connect_args={'timeout': lock_timeout, 'check_same_thread': False},
        )
        _enable_sqlite_write_locks(engine)
    else:
        engine = create_engine(
            database_uri,
            echo=app.config.get('SQLALCHEMY_ECHO', False),
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )

    # Records handed back by services must stay readable after commit
    SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )
    db_session = scoped_session(SessionLocal)

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def _enable_sqlite_write_locks(sqlite_engine):
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    SQLite has no row locks and ignores FOR UPDATE; taking the database write
    lock when the transaction begins serializes writers the same way, and the
    driver's busy timeout bounds the wait.
    """

    @event.listens_for(sqlite_engine, 'connect')
    def on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, 'begin')
    def on_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def get_session():
    """Get database session."""
    return db_session


def new_session():
    """Open an independent session (worker threads, CLI, scripts)."""
    return SessionLocal()


def get_engine():
    """Get the configured engine."""
    return engine


def apply_lock_timeout(session, seconds):
    """
    Bound how long the current transaction waits on row locks.

    PostgreSQL honours SET LOCAL lock_timeout for the rest of the transaction;
    on SQLite the bound is the connection busy timeout set in init_db.
    """
    if session.get_bind().dialect.name != 'postgresql':
        return
    millis = max(int(float(seconds) * 1000), 1)
    session.execute(text(f"SET LOCAL lock_timeout = {millis}"))


def is_lock_failure(exc):
    """True when a DB error means a lock wait expired or a deadlock was broken."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)
    if sqlstate in LOCK_FAILURE_SQLSTATES:
        return True
    return 'database is locked' in str(orig).lower()

