"""Builders for interaction responses and outbound message payloads."""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Any, Dict, List

from pydantic import BaseModel, Field

NOT_REGISTERED_COMMAND = "This command is not registered"
NOT_REGISTERED_COMPONENT = "This message component is not registered"
ERROR_PREFIX = "An error occurred: "


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9


class MessageFlags(IntFlag):
    CROSSPOSTED = 1 << 0
    IS_CROSSPOST = 1 << 1
    SUPPRESS_EMBEDS = 1 << 2
    SOURCE_MESSAGE_DELETED = 1 << 3
    URGENT = 1 << 4
    HAS_THREAD = 1 << 5
    EPHEMERAL = 1 << 6
    LOADING = 1 << 7
    SUPPRESS_NOTIFICATIONS = 1 << 12


class MessageBuilder(BaseModel):
    """Message payload shared by interaction responses and follow-ups.

    Setters return the builder so calls can be chained::

        MessageBuilder().set_content("Saved").add_embed({"title": "Done"})
    """

    allowed_mentions: Dict[str, Any] | None = None
    attachments: List[Dict[str, Any]] | None = None
    choices: List[Dict[str, Any]] | None = None
    components: List[Dict[str, Any]] | None = None
    content: str | None = None
    custom_id: str | None = None
    embeds: List[Dict[str, Any]] | None = None
    flags: int | None = None
    title: str | None = None
    tts: bool | None = None

    def set_content(self, content: str) -> "MessageBuilder":
        self.content = content
        return self

    def set_custom_id(self, custom_id: str) -> "MessageBuilder":
        self.custom_id = custom_id
        return self

    def set_title(self, title: str) -> "MessageBuilder":
        self.title = title
        return self

    def add_embed(self, embed: Dict[str, Any]) -> "MessageBuilder":
        self.embeds = [*(self.embeds or []), embed]
        return self

    def add_component(self, component: Dict[str, Any]) -> "MessageBuilder":
        self.components = [*(self.components or []), component]
        return self

    def add_flags(self, flags: MessageFlags | int) -> "MessageBuilder":
        self.flags = int(MessageFlags(self.flags or 0) | flags)
        return self

    def ephemeral(self) -> "MessageBuilder":
        return self.add_flags(MessageFlags.EPHEMERAL)

    @property
    def is_ephemeral(self) -> bool:
        return bool((self.flags or 0) & MessageFlags.EPHEMERAL)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class MemberEditBuilder(BaseModel):
    """Payload for modifying a guild member."""

    nick: str | None = None
    roles: List[str] | None = None
    mute: bool | None = None
    deaf: bool | None = None
    channel_id: str | None = None
    communication_disabled_until: str | None = None

    def set_nick(self, nick: str) -> "MemberEditBuilder":
        self.nick = nick
        return self

    def set_roles(self, roles: List[str | int]) -> "MemberEditBuilder":
        self.roles = [str(role) for role in roles]
        return self

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InteractionResponse(BaseModel):
    type: InteractionResponseType
    data: MessageBuilder | None = Field(default=None)

    @classmethod
    def pong(cls) -> "InteractionResponse":
        return cls(type=InteractionResponseType.PONG)

    @classmethod
    def message(cls, message: MessageBuilder) -> "InteractionResponse":
        return cls(type=InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, data=message)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def error_message(message: str) -> InteractionResponse:
    """Return an ephemeral reply carrying *message* as its only content."""

    return InteractionResponse.message(MessageBuilder(content=message).ephemeral())
