"""Verify, decode and route inbound interactions to registered handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping
from uuid import uuid4

import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from interaction_router.capabilities import CapabilityProvider
from interaction_router.config import DEFAULT_API_BASE_URL
from interaction_router.errors import InteractionDecodeError, SignatureDecodeError
from interaction_router.rest import RestClient
from interaction_router.security import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_signature

from .context import InteractionContext, RestFactory
from .messages import (
    ERROR_PREFIX,
    NOT_REGISTERED_COMMAND,
    NOT_REGISTERED_COMPONENT,
    InteractionResponse,
    error_message,
)
from .models import (
    Interaction,
    InteractionType,
    parse_command_data,
    parse_component_data,
    parse_interaction,
)
from .registry import HandlerRegistry

INVALID_TOKEN = "Invalid token"
MALFORMED_SIGNATURE = "Malformed signature"
MALFORMED_INTERACTION = "Malformed interaction"
MISSING_IMPLEMENTATION = "Missing implementation"


@dataclass(frozen=True)
class DispatchResult:
    """HTTP-level outcome: a JSON envelope on success, plain text otherwise."""

    status: int
    payload: Dict[str, Any] | None = None
    text: str | None = None

    @classmethod
    def reply(cls, response: InteractionResponse) -> "DispatchResult":
        return cls(status=200, payload=response.to_payload())

    @classmethod
    def error(cls, status: int, text: str) -> "DispatchResult":
        return cls(status=status, text=text)


class InteractionDispatcher:
    """Run one inbound request from raw bytes to a response.

    Authentication, decoding and unsupported kinds end the request with a
    non-2xx status. Once a command or component interaction is decoded the
    caller always receives a 200 reply; routing misses and handler failures
    become ephemeral messages.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        public_key: str,
        bot_token: str,
        capabilities: CapabilityProvider,
        rest_factory: RestFactory | None = None,
        api_base_url: str = DEFAULT_API_BASE_URL,
        rest_timeout_seconds: float = 10.0,
    ) -> None:
        self.registry = registry
        self._public_key = public_key
        self._bot_token = bot_token
        self._capabilities = capabilities
        self._api_base_url = api_base_url
        self._rest_timeout_seconds = rest_timeout_seconds
        self._rest_factory = rest_factory or self._build_rest

    def _build_rest(self, token: str) -> RestClient:
        return RestClient(
            token=token,
            base_url=self._api_base_url,
            timeout_seconds=self._rest_timeout_seconds,
        )

    async def dispatch(self, body: bytes, headers: Mapping[str, str]) -> DispatchResult:
        trace_id = str(uuid4())
        bind_contextvars(trace_id=trace_id)
        log = structlog.get_logger().bind(trace_id=trace_id)
        try:
            normalised = {key.lower(): value for key, value in headers.items()}
            try:
                authenticated = verify_signature(
                    public_key=self._public_key,
                    timestamp=normalised.get(TIMESTAMP_HEADER.lower()),
                    body=body,
                    signature=normalised.get(SIGNATURE_HEADER.lower()),
                )
            except SignatureDecodeError as exc:
                log.warning("interaction_rejected", reason="malformed_signature", error=str(exc))
                return DispatchResult.error(400, MALFORMED_SIGNATURE)
            if not authenticated:
                log.warning("interaction_rejected", reason="invalid_signature")
                return DispatchResult.error(401, INVALID_TOKEN)

            try:
                interaction = parse_interaction(body)
            except InteractionDecodeError as exc:
                log.warning("interaction_rejected", reason="malformed_body", error=str(exc))
                return DispatchResult.error(400, MALFORMED_INTERACTION)

            log = log.bind(interaction_id=interaction.id, interaction_type=interaction.type)
            log.info("interaction_received")
            return await self._route(interaction, trace_id=trace_id, log=log)
        finally:
            unbind_contextvars("trace_id")

    async def _route(self, interaction: Interaction, *, trace_id: str, log) -> DispatchResult:
        kind = interaction.kind

        if kind is InteractionType.PING:
            return DispatchResult.reply(InteractionResponse.pong())

        try:
            if kind is InteractionType.APPLICATION_COMMAND:
                data = parse_command_data(interaction)
                route = data.name
                handler = self.registry.find_command(route)
                missing_text = NOT_REGISTERED_COMMAND
            elif kind is InteractionType.MESSAGE_COMPONENT:
                data = parse_component_data(interaction)
                route = data.custom_id
                match = self.registry.match_component(route)
                handler = None
                if match is not None:
                    pattern, handler = match
                    log = log.bind(pattern=str(pattern))
                missing_text = NOT_REGISTERED_COMPONENT
            else:
                log.warning("interaction_rejected", reason="unsupported_type")
                return DispatchResult.error(400, MISSING_IMPLEMENTATION)
        except InteractionDecodeError as exc:
            log.warning("interaction_rejected", reason="malformed_data", error=str(exc))
            return DispatchResult.error(400, MALFORMED_INTERACTION)

        log = log.bind(route=route)
        if handler is None:
            log.info("interaction_unrouted")
            return DispatchResult.reply(error_message(missing_text))

        rest = self._rest_factory(self._bot_token)
        context = InteractionContext(
            raw=interaction,
            data=data,
            rest=rest,
            capabilities=self._capabilities,
            rest_factory=self._rest_factory,
            trace_id=trace_id,
        )
        try:
            response = await handler(context)
            if not isinstance(response, InteractionResponse):
                raise TypeError(
                    f"Handler returned {type(response).__name__}, expected InteractionResponse"
                )
        except Exception as exc:
            log.exception("interaction_handler_failed", error=str(exc))
            return DispatchResult.reply(error_message(f"{ERROR_PREFIX}{exc}"))
        finally:
            await rest.close()

        log.info("interaction_dispatched", response_type=int(response.type))
        return DispatchResult.reply(response)
