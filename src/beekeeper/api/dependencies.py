"""Shared dependencies for Beekeeper API."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from beekeeper.app import Beekeeper
from beekeeper.storage import Database


def get_beekeeper(request: Request) -> Beekeeper:
    """Get the application object from app state.

    Args:
        request: FastAPI request object.

    Returns:
        The Beekeeper instance serving this API.
    """
    beekeeper: Beekeeper = request.app.state.beekeeper
    return beekeeper


def require_database(request: Request) -> Database:
    """Get the run history database, raising if not configured.

    Args:
        request: FastAPI request object.

    Returns:
        Database instance.

    Raises:
        HTTPException: If no database is configured.
    """
    db: Database | None = request.app.state.db
    if db is None:
        raise HTTPException(status_code=503, detail="Run history database not configured")
    return db


# Type aliases for dependency injection
App = Annotated[Beekeeper, Depends(get_beekeeper)]
RequiredDatabase = Annotated[Database, Depends(require_database)]
