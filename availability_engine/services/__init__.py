"""
Service layer exposing the engine to booking and calendar callers.
"""

from .scheduling import SchedulingFacade

__all__ = ["SchedulingFacade"]
