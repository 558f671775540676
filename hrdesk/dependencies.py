"""Shared FastAPI dependencies for application-scoped state."""

from fastapi import Request

from hrdesk.attendance.recorder import DeviceLogRegistry
from hrdesk.core_hr.importer import PendingImportRegistry
from hrdesk.dashboard.state import AppState


def get_app_state(request: Request) -> AppState:
    return request.app.state.app_state


def get_import_registry(request: Request) -> PendingImportRegistry:
    return request.app.state.import_registry


def get_device_logs(request: Request) -> DeviceLogRegistry:
    return request.app.state.device_logs
