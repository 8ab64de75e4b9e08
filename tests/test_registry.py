"""Tests for the command and component routing tables."""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from interaction_router.interactions import CustomIdPattern, HandlerRegistry  # noqa: E402


async def first_handler(ctx):  # pragma: no cover - never awaited
    return None


async def second_handler(ctx):  # pragma: no cover - never awaited
    return None


def test_command_is_found_by_exact_name_only():
    registry = HandlerRegistry()
    registry.register_command("ping", first_handler)

    assert registry.find_command("ping") is first_handler
    assert registry.find_command("Ping") is None
    assert registry.find_command("pin") is None
    assert registry.find_command("ping ") is None


def test_reregistering_command_replaces_handler():
    registry = HandlerRegistry()
    registry.register_command("ping", first_handler)
    registry.register_command("ping", second_handler)

    assert registry.find_command("ping") is second_handler
    assert len(registry) == 1
    assert registry.command_names == ["ping"]


def test_component_lookup_uses_first_registered_match():
    registry = HandlerRegistry()
    registry.register_component(CustomIdPattern.starts_with("role:"), first_handler)
    registry.register_component(CustomIdPattern.equals("role:admin"), second_handler)

    assert registry.find_component("role:admin") is first_handler
    assert registry.find_component("role:42") is first_handler
    assert registry.find_component("confirm") is None


def test_match_component_returns_matching_pattern():
    registry = HandlerRegistry()
    registry.register_component(CustomIdPattern.starts_with("role:"), first_handler)

    assert registry.match_component("role:7") == (CustomIdPattern.starts_with("role:"), first_handler)
    assert registry.match_component("confirm") is None


def test_equal_component_patterns_overwrite_in_place():
    registry = HandlerRegistry()
    registry.register_component(CustomIdPattern.equals("confirm"), first_handler)
    registry.register_component(CustomIdPattern.starts_with("con"), first_handler)
    registry.register_component(CustomIdPattern.equals("confirm"), second_handler)

    assert len(registry) == 2
    assert registry.component_patterns == [
        CustomIdPattern.equals("confirm"),
        CustomIdPattern.starts_with("con"),
    ]
    assert registry.find_component("confirm") is second_handler


def test_commands_and_components_are_independent():
    registry = HandlerRegistry()
    registry.register_command("confirm", first_handler)

    assert registry.find_component("confirm") is None


def test_decorators_register_and_return_handler():
    registry = HandlerRegistry()

    @registry.command("echo")
    async def echo(ctx):  # pragma: no cover - never awaited
        return None

    @registry.component(CustomIdPattern.equals("ok"))
    async def ok(ctx):  # pragma: no cover - never awaited
        return None

    assert registry.find_command("echo") is echo
    assert registry.find_component("ok") is ok
    assert len(registry) == 2
