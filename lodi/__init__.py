from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import make_url
import os
from lodi.logger import get_logger

# Initialize extensions
db = SQLAlchemy()


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _parse_delays(raw):
    """Parse a comma separated list of seconds into a tuple of floats"""
    return tuple(float(part) for part in raw.split(',') if part.strip())


def _serialize_sqlite_writers(engine):
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite only issues BEGIN before DML statements, so a read-then-write
    operation could interleave with another writer. BEGIN IMMEDIATE keeps
    each store transaction serializable across threads and processes.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _engine_options(database_uri, engine_options=None):
    """
    Engine options that keep store transactions serializable.

    SQLite gets BEGIN IMMEDIATE from _serialize_sqlite_writers. Server
    databases run every transaction at SERIALIZABLE so two processes cannot
    both read a deposit's lists and write them back over each other; the
    loser fails with a SQLAlchemy error and is rolled back.
    """
    options = dict(engine_options or {})
    if make_url(database_uri).get_backend_name() != 'sqlite':
        options.setdefault('isolation_level', 'SERIALIZABLE')
    return options


def create_app(config_overrides=None):
    from pathlib import Path

    app = Flask(__name__, instance_path=str(Path(__file__).parent.parent / 'instance'))

    # Get singleton logger
    logger = get_logger("lodi")
    logger.info("Initializing Lodi application")

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Progression worker: delay before each lifecycle step, and retries per step
    app.config['WORKER_STEP_DELAYS'] = _parse_delays(os.environ.get('LODI_WORKER_DELAYS', '2,2,3,2'))
    app.config['WORKER_MAX_ATTEMPTS'] = int(os.environ.get('LODI_WORKER_MAX_ATTEMPTS', '3'))

    # Bootstrap the two demo deposits on first build
    app.config['BOOTSTRAP_ON_BUILD'] = _env_flag('LODI_BOOTSTRAP_ON_BUILD', 'True')

    if config_overrides:
        app.config.update(config_overrides)

    # Prefer an explicit DATABASE_URL env var; if not provided, store the
    # SQLite database inside the project's `instance/` directory.
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        db_env = os.environ.get('DATABASE_URL')
        if db_env:
            app.config['SQLALCHEMY_DATABASE_URI'] = db_env
        else:
            instance_dir = Path(app.instance_path)
            instance_dir.mkdir(parents=True, exist_ok=True)
            default_db_path = instance_dir / 'lodi.db'
            app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    if len(app.config['WORKER_STEP_DELAYS']) != 4:
        raise RuntimeError("WORKER_STEP_DELAYS must contain exactly four delays")

    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = _engine_options(
        app.config['SQLALCHEMY_DATABASE_URI'],
        app.config.get('SQLALCHEMY_ENGINE_OPTIONS'),
    )

    db.init_app(app)

    # Import models to ensure they're registered with SQLAlchemy
    from lodi.data.logistics import DepositRow, PackageRow, ArticleRow, TransportLogRow

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            _serialize_sqlite_writers(db.engine)
            logger.debug("Database configured: SQLite (serialized writers)")
        else:
            logger.debug(f"Database configured: {db.engine.dialect.name}")

    logger.info("Lodi application initialization complete")

    return app
