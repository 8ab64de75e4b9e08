"""Routing tables mapping command names and custom-id patterns to handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Tuple, TypeVar

from .patterns import CustomIdPattern

if TYPE_CHECKING:
    from .context import InteractionContext
    from .messages import InteractionResponse
    from .models import CommandData, ComponentData

CommandHandler = Callable[["InteractionContext[CommandData]"], Awaitable["InteractionResponse"]]
ComponentHandler = Callable[["InteractionContext[ComponentData]"], Awaitable["InteractionResponse"]]

_F = TypeVar("_F", bound=Callable[..., Awaitable["InteractionResponse"]])


class HandlerRegistry:
    """Command and component handlers registered at start-up.

    The registry is populated once while the application is built and then
    only read, so concurrent requests can share it without locking.
    Registering the same command name or an equal pattern again replaces the
    earlier handler.
    """

    def __init__(self) -> None:
        self._commands: Dict[str, CommandHandler] = {}
        self._components: Dict[CustomIdPattern, ComponentHandler] = {}

    def register_command(self, name: str, handler: CommandHandler) -> None:
        self._commands[name] = handler

    def register_component(self, pattern: CustomIdPattern, handler: ComponentHandler) -> None:
        self._components[pattern] = handler

    def command(self, name: str) -> Callable[[_F], _F]:
        """Decorator form of :meth:`register_command`."""

        def decorator(func: _F) -> _F:
            self.register_command(name, func)
            return func

        return decorator

    def component(self, pattern: CustomIdPattern) -> Callable[[_F], _F]:
        """Decorator form of :meth:`register_component`."""

        def decorator(func: _F) -> _F:
            self.register_component(pattern, func)
            return func

        return decorator

    def find_command(self, name: str) -> CommandHandler | None:
        return self._commands.get(name)

    def find_component(self, custom_id: str) -> ComponentHandler | None:
        match = self.match_component(custom_id)
        return match[1] if match is not None else None

    def match_component(self, custom_id: str) -> Tuple[CustomIdPattern, ComponentHandler] | None:
        """Return the first registered pattern matching *custom_id* with its handler."""

        for pattern, handler in self._components.items():
            if pattern.matches(custom_id):
                return pattern, handler
        return None

    @property
    def command_names(self) -> List[str]:
        return list(self._commands)

    @property
    def component_patterns(self) -> List[CustomIdPattern]:
        return list(self._components)

    def __len__(self) -> int:
        return len(self._commands) + len(self._components)
