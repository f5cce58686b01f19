"""FastAPI dependency injection — DB sessions, catalog, storage, staff auth.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the convention where repository methods call ``flush()`` but never
``commit()``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.backend import SqlIntakeBackend
from intake_db.engine import session_scope
from intake_db.repository import IntakeRepository
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.interfaces import DocumentStorage, IntakeBackend

from intake_server.config import ServerSettings


# ------------------------------------------------------------------
# Database session — transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    async with session_scope() as session:
        yield session


def get_repository() -> IntakeRepository:
    return IntakeRepository()


def get_backend(db: AsyncSession = Depends(get_db)) -> IntakeBackend:
    """Intake storage collaborator bound to this request's DB session."""
    return SqlIntakeBackend(db)


# ------------------------------------------------------------------
# Catalog, storage & settings — stashed on app.state
# ------------------------------------------------------------------

def get_catalog(request: Request) -> SectionCatalog:
    """Return the SectionCatalog singleton from ``app.state``."""
    return request.app.state.catalog


def get_storage(request: Request) -> DocumentStorage:
    """Return the DocumentStorage singleton from ``app.state``."""
    return request.app.state.storage


def get_settings(request: Request) -> ServerSettings:
    """Return the ServerSettings the app was created with."""
    return request.app.state.settings


# ------------------------------------------------------------------
# Staff auth — X-Admin-Key shared secret
# ------------------------------------------------------------------

async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> str:
    """Validate the ``X-Admin-Key`` header against ``ADMIN_API_KEY``.

    Raises 403 if no key is configured or the key does not match, 401 if
    the header is missing.
    """
    expected: str | None = request.app.state.settings.admin_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are disabled (ADMIN_API_KEY not configured)",
        )
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="X-Admin-Key header is required")
    # Constant-time comparison to prevent timing side-channels.
    if not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key
