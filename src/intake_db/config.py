"""Where the intake database lives, from environment variables.

``DATABASE_URL`` wins when set.  Otherwise the URL is assembled from
``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD`` and ``PG_DATABASE``
(the docker-compose style), with credentials escaped by SQLAlchemy's
:class:`~sqlalchemy.engine.URL` so passwords may contain ``@`` or ``/``.

Two flavours of the same URL are handed out:

    get_sync_url()   postgresql://          Alembic (runs synchronously)
    get_async_url()  postgresql+asyncpg://  the app's async engine
"""

import os

from sqlalchemy.engine import URL, make_url

SYNC_DRIVER = "postgresql"
ASYNC_DRIVER = "postgresql+asyncpg"

# Local development defaults; every intake table lives in one database
_DEFAULT_NAME = "intake"


def _configured_url() -> URL:
    raw = os.getenv("DATABASE_URL")
    if raw:
        return make_url(raw)
    return URL.create(
        SYNC_DRIVER,
        username=os.getenv("PG_USER", _DEFAULT_NAME),
        password=os.getenv("PG_PASSWORD", _DEFAULT_NAME),
        host=os.getenv("PG_HOST", "localhost"),
        port=int(os.getenv("PG_PORT", "5432")),
        database=os.getenv("PG_DATABASE", _DEFAULT_NAME),
    )


def _with_driver(driver: str) -> str:
    url = _configured_url().set(drivername=driver)
    return url.render_as_string(hide_password=False)


def get_sync_url() -> str:
    """Connection URL for Alembic migrations (psycopg2)."""
    return _with_driver(SYNC_DRIVER)


def get_async_url() -> str:
    """Connection URL for the runtime engine (asyncpg)."""
    return _with_driver(ASYNC_DRIVER)
