"""
FastAPI dependencies resolving the collaborators created in the lifespan
"""

from fastapi import Request

from api.interpreter import QueryInterpreter
from ingestion.cache import RiverDataCache
from ingestion.loaders.sqlite_loader import RiverRepository
from ingestion.runner import RefreshRunner
from ingestion.scheduler import RefreshScheduler


def get_repository(request: Request) -> RiverRepository:
    return request.app.state.repository


def get_runner(request: Request) -> RefreshRunner:
    return request.app.state.runner


def get_cache(request: Request) -> RiverDataCache:
    return request.app.state.cache


def get_scheduler(request: Request) -> RefreshScheduler:
    return getattr(request.app.state, "scheduler", None)


def get_interpreter(request: Request) -> QueryInterpreter:
    """None when no interpreter is configured"""
    return getattr(request.app.state, "interpreter", None)
