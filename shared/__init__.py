"""Shared utilities and components for all services."""

from .config import BaseClickHouseConfig, BaseLoggingConfig, BaseServiceConfig
from .constants import Environment, EventTables

__all__ = [
    "Environment",
    "EventTables",
    "BaseServiceConfig",
    "BaseLoggingConfig",
    "BaseClickHouseConfig",
]
