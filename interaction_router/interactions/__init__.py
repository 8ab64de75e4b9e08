"""Interaction models, routing tables and the dispatch pipeline."""

from .context import InteractionContext
from .dispatcher import DispatchResult, InteractionDispatcher
from .messages import (
    InteractionResponse,
    InteractionResponseType,
    MemberEditBuilder,
    MessageBuilder,
    MessageFlags,
    error_message,
)
from .models import CommandData, ComponentData, Interaction, InteractionType
from .patterns import CustomIdPattern
from .registry import CommandHandler, ComponentHandler, HandlerRegistry

__all__ = [
    "CommandData",
    "ComponentData",
    "CommandHandler",
    "ComponentHandler",
    "CustomIdPattern",
    "DispatchResult",
    "HandlerRegistry",
    "Interaction",
    "InteractionContext",
    "InteractionDispatcher",
    "InteractionResponse",
    "InteractionResponseType",
    "InteractionType",
    "MemberEditBuilder",
    "MessageBuilder",
    "MessageFlags",
    "error_message",
]
