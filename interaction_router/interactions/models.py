"""Pydantic models describing inbound interaction payloads."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from interaction_router.errors import InteractionDecodeError


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str | None = None
    global_name: str | None = None


class Member(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: User | None = None
    nick: str | None = None
    roles: List[str] = Field(default_factory=list)
    permissions: str | None = None


class Interaction(BaseModel):
    """An inbound interaction as delivered by the platform.

    ``data`` stays an untyped mapping here; the dispatcher turns it into
    :class:`CommandData` or :class:`ComponentData` depending on ``type``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    application_id: str
    type: int
    token: str
    data: Dict[str, Any] | None = None
    guild_id: str | None = None
    channel_id: str | None = None
    member: Member | None = None
    user: User | None = None
    message: Dict[str, Any] | None = None
    locale: str | None = None
    version: int = 1

    @property
    def kind(self) -> InteractionType | None:
        try:
            return InteractionType(self.type)
        except ValueError:
            return None

    @property
    def author_id(self) -> str | None:
        if self.member is not None and self.member.user is not None:
            return self.member.user.id
        if self.user is not None:
            return self.user.id
        return None


class CommandOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: int
    value: Any = None
    options: List["CommandOption"] = Field(default_factory=list)
    focused: bool | None = None


class CommandData(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: int = 1
    options: List[CommandOption] = Field(default_factory=list)
    resolved: Dict[str, Any] | None = None
    guild_id: str | None = None
    target_id: str | None = None

    def option(self, name: str, default: Any = None) -> Any:
        """Return the value of the top-level option called *name*."""

        for item in self.options:
            if item.name == name:
                return item.value
        return default


class ComponentData(BaseModel):
    model_config = ConfigDict(frozen=True)

    custom_id: str
    component_type: int
    values: List[str] = Field(default_factory=list)


def parse_interaction(body: bytes) -> Interaction:
    """Decode a raw request body into an :class:`Interaction`."""

    try:
        return Interaction.model_validate_json(body)
    except ValidationError as exc:
        raise InteractionDecodeError(f"Malformed interaction: {exc.error_count()} error(s)") from exc


def parse_command_data(interaction: Interaction) -> CommandData:
    if interaction.data is None:
        raise InteractionDecodeError("Application command interaction is missing data")
    try:
        return CommandData.model_validate(interaction.data)
    except ValidationError as exc:
        raise InteractionDecodeError("Malformed application command data") from exc


def parse_component_data(interaction: Interaction) -> ComponentData:
    if interaction.data is None:
        raise InteractionDecodeError("Message component interaction is missing data")
    try:
        return ComponentData.model_validate(interaction.data)
    except ValidationError as exc:
        raise InteractionDecodeError("Malformed message component data") from exc
