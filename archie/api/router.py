"""Main API router aggregation."""

from fastapi import APIRouter

from archie.api.routes import health, threads

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(threads.router, tags=["threads"])
