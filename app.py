"""Application entry point for the interaction router."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from flask import Flask, Response, jsonify, request
from sqlalchemy import text
import structlog

from interaction_router.capabilities import CapabilityProvider, EnvironmentCapabilities
from interaction_router.config import AppSettings, get_settings
from interaction_router.db import init_db, session_scope
from interaction_router.interactions import (
    CommandData,
    ComponentData,
    CustomIdPattern,
    HandlerRegistry,
    InteractionContext,
    InteractionDispatcher,
    InteractionResponse,
)
from interaction_router.interactions.context import RestFactory
from interaction_router.logging_config import configure_logging

ROLE_TOGGLE_PREFIX = "role:"


async def handle_ping(ctx: InteractionContext[CommandData]) -> InteractionResponse:
    return ctx.followup("Pong!", ephemeral=True)


async def handle_role_toggle(ctx: InteractionContext[ComponentData]) -> InteractionResponse:
    """Give or take the role named in the button's custom id."""

    role_id = ctx.data.custom_id[len(ROLE_TOGGLE_PREFIX):]
    guild_id = ctx.guild_id
    user_id = ctx.user_id
    if not role_id or guild_id is None or user_id is None:
        return ctx.followup("Roles can only be toggled inside a server.", ephemeral=True)

    member = ctx.raw.member
    current_roles = member.roles if member is not None else []
    if role_id in current_roles:
        await ctx.rest.remove_role(guild_id, user_id, role_id)
        return ctx.followup(f"Removed <@&{role_id}>.", ephemeral=True)

    await ctx.rest.add_role(guild_id, user_id, role_id)
    return ctx.followup(f"Added <@&{role_id}>.", ephemeral=True)


def build_registry() -> HandlerRegistry:
    """Return the routing tables served by this deployment."""

    registry = HandlerRegistry()
    registry.register_command("ping", handle_ping)
    registry.register_component(CustomIdPattern.starts_with(ROLE_TOGGLE_PREFIX), handle_role_toggle)
    return registry


def _build_dispatcher(
    settings: AppSettings,
    registry: HandlerRegistry,
    capabilities: CapabilityProvider | None,
    rest_factory: RestFactory | None,
) -> InteractionDispatcher:
    if capabilities is None:
        capabilities = EnvironmentCapabilities(
            kv_namespaces=settings.kv_namespaces,
            durable_objects=settings.durable_objects,
        )
    return InteractionDispatcher(
        registry,
        public_key=settings.public_key,
        bot_token=settings.bot_token,
        capabilities=capabilities,
        rest_factory=rest_factory,
        api_base_url=settings.api_base_url,
        rest_timeout_seconds=settings.rest_timeout_seconds,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        trace_id = str(uuid4())
        structlog.get_logger().error(
            "unhandled_application_error", trace_id=trace_id, error=str(error), exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


_LOGGING_CONFIGURED = False


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app(
    registry: HandlerRegistry | None = None,
    *,
    capabilities: CapabilityProvider | None = None,
    rest_factory: RestFactory | None = None,
) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED
    settings = get_settings()
    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    init_db()
    if registry is None:
        registry = build_registry()
    dispatcher = _build_dispatcher(settings, registry, capabilities, rest_factory)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel(settings.log_level)

    _register_error_handlers(flask_app)

    @flask_app.route(settings.interactions_path, methods=["POST"])
    async def interactions():
        result = await dispatcher.dispatch(request.get_data(), request.headers)
        if result.payload is not None:
            return jsonify(result.payload), result.status
        return Response(result.text, status=result.status, mimetype="text/plain")

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        health["commands"] = len(registry.command_names)
        health["components"] = len(registry.component_patterns)

        try:
            get_settings()
            health["config"] = "valid"
        except Exception as exc:  # pragma: no cover - settings were validated above
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False

        try:
            with session_scope() as session:
                session.execute(text("SELECT 1"))
            health["db"] = "up"
        except Exception as exc:
            health["db"] = "down"
            health["db_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=3000, debug=True)
