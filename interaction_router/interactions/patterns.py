"""Custom-id patterns used to route message component interactions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CustomIdPattern:
    """Either an exact or a prefix rule for a component ``custom_id``.

    Instances are hashable so they can key the component routing table.
    """

    prefix: str | None = None
    exact: str | None = None

    def __post_init__(self) -> None:
        if self.prefix is not None and self.exact is not None:
            raise ValueError("A custom-id pattern is either a prefix or an exact match, not both.")

    @classmethod
    def starts_with(cls, prefix: str) -> "CustomIdPattern":
        return cls(prefix=prefix)

    @classmethod
    def equals(cls, custom_id: str) -> "CustomIdPattern":
        return cls(exact=custom_id)

    def matches(self, custom_id: str) -> bool:
        if self.prefix is not None:
            return custom_id.startswith(self.prefix)
        if self.exact is not None:
            return custom_id == self.exact
        return False

    def __str__(self) -> str:
        if self.prefix is not None:
            return f"{self.prefix}*"
        if self.exact is not None:
            return self.exact
        return "<never>"
