"""Per-request context handed to interaction handlers."""

from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

import structlog

from interaction_router.background import run_async
from interaction_router.capabilities import CapabilityProvider
from interaction_router.errors import RestError
from interaction_router.storage import DurableObjectNamespace, KvStore

from .messages import InteractionResponse, InteractionResponseType, MessageBuilder, MessageFlags
from .models import Interaction

if TYPE_CHECKING:
    from interaction_router.rest import RestClient

D = TypeVar("D")

RestFactory = Callable[[str], "RestClient"]


def _as_builder(message: MessageBuilder | str | None) -> MessageBuilder:
    if message is None:
        return MessageBuilder()
    if isinstance(message, str):
        return MessageBuilder(content=message)
    return message.model_copy(deep=True)


async def _deliver_followup(
    rest_factory: RestFactory,
    token: str,
    application_id: str,
    interaction_token: str,
    message: MessageBuilder,
) -> None:
    log = structlog.get_logger().bind(application_id=application_id)
    async with rest_factory(token) as rest:
        try:
            await rest.post_followup(application_id, interaction_token, message)
        except RestError as exc:
            log.warning("followup_failed", error=str(exc), status_code=exc.status_code)
            return
        except Exception as exc:
            log.error("followup_failed", error=str(exc), exc_info=exc)
            return
    log.info("followup_sent")


class InteractionContext(Generic[D]):
    """Everything a handler needs to answer one interaction.

    ``raw`` is the decoded interaction, ``data`` the command or component
    payload, ``rest`` a platform client authenticated with the bot token and
    ``capabilities`` the host bindings (secrets, vars, storage).
    """

    def __init__(
        self,
        *,
        raw: Interaction,
        data: D,
        rest: RestClient,
        capabilities: CapabilityProvider,
        rest_factory: RestFactory,
        trace_id: str | None = None,
    ) -> None:
        self.raw = raw
        self.data = data
        self.rest = rest
        self.capabilities = capabilities
        self.trace_id = trace_id
        self._rest_factory = rest_factory

    @property
    def guild_id(self) -> str | None:
        return self.raw.guild_id

    @property
    def user_id(self) -> str | None:
        return self.raw.author_id

    def followup(
        self, message: MessageBuilder | str | None = None, *, ephemeral: bool = False
    ) -> InteractionResponse:
        """Build the reply-with-message response for this interaction."""

        builder = _as_builder(message)
        if ephemeral:
            builder.add_flags(MessageFlags.EPHEMERAL)
        return InteractionResponse.message(builder)

    def update_message(self, message: MessageBuilder | str) -> InteractionResponse:
        """Build a response that edits the message the component belongs to."""

        return InteractionResponse(
            type=InteractionResponseType.UPDATE_MESSAGE, data=_as_builder(message)
        )

    def defer(self, *, ephemeral: bool = False) -> InteractionResponse:
        """Acknowledge now and answer later with :meth:`send_followup`."""

        data = MessageBuilder().ephemeral() if ephemeral else None
        return InteractionResponse(
            type=InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE, data=data
        )

    def send_followup(
        self, message: MessageBuilder | str, *, ephemeral: bool = False
    ) -> Future:
        """Post a follow-up message in the background.

        The delivery uses its own client built from the bot token; failures are
        logged and never reach the original caller.
        """

        builder = _as_builder(message)
        if ephemeral:
            builder.add_flags(MessageFlags.EPHEMERAL)
        return run_async(
            _deliver_followup,
            self._rest_factory,
            self.rest.token,
            self.raw.application_id,
            self.raw.token,
            builder,
            trace_id=self.trace_id,
        )

    def secret(self, binding: str) -> str:
        return self.capabilities.secret(binding)

    def var(self, binding: str) -> str:
        return self.capabilities.var(binding)

    def kv(self, binding: str) -> KvStore:
        return self.capabilities.kv(binding)

    def durable_object(self, binding: str) -> DurableObjectNamespace:
        return self.capabilities.durable_object(binding)
