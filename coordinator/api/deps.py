"""Shared API dependencies. Core objects live on ``app.state`` (see main.py)."""

from fastapi import Request

from coordinator.engine.scheduler import ReaperSchedule
from coordinator.engine.reaper import ExpiryReaper
from coordinator.services.coordinator import TradeCoordinator


def get_coordinator(request: Request) -> TradeCoordinator:
    return request.app.state.coordinator


def get_reaper(request: Request) -> ExpiryReaper:
    return request.app.state.reaper


def get_reaper_schedule(request: Request) -> ReaperSchedule | None:
    return request.app.state.reaper_schedule