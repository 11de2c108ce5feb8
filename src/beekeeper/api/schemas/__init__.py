"""Beekeeper API schemas."""

from .bees import BeeConfigUpdate, BeeListItem, BeeRunResponse
from .common import ErrorResponse, MessageResponse
from .confirmations import ConfirmationAnswer, ConfirmationItem
from .runs import HiveStatus, RunItem

__all__ = [
    "BeeConfigUpdate",
    "BeeListItem",
    "BeeRunResponse",
    "ConfirmationAnswer",
    "ConfirmationItem",
    "ErrorResponse",
    "HiveStatus",
    "MessageResponse",
    "RunItem",
]
