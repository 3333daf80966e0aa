"""Router aggregation.

Feature routers are mounted under ``/api``.
"""

from fastapi import FastAPI

from . import auth, dashboard, entries, jobs, profile, reports


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    app.include_router(auth.router, prefix="/api")
    app.include_router(profile.router, prefix="/api")
    app.include_router(entries.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")
    app.include_router(jobs.router, prefix="/api")
