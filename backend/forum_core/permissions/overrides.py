"""
Parent-override declarations per entity kind.

A permission in ``positive`` lets a parent's ALLOW force the child to ALLOW;
one in ``negative`` lets a parent's DENY force the child to DENY. The sets
are fixed per kind at startup and only read during resolution.
"""
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

VIEWABLE_PERMISSION = "viewable"


@dataclass(frozen=True)
class OverrideSets:
    positive: frozenset[str] = field(default_factory=frozenset)
    negative: frozenset[str] = field(default_factory=frozenset)


EMPTY_OVERRIDES = OverrideSets()


class OverrideRegistry:
    def __init__(self) -> None:
        self._by_kind: dict[str, OverrideSets] = {}

    def register(
        self,
        kind: str,
        *,
        positive: Iterable[str] = (),
        negative: Iterable[str] = (),
    ) -> OverrideSets:
        positive_set = frozenset(positive)
        negative_set = frozenset(negative)
        ambiguous = positive_set & negative_set
        if ambiguous:
            logger.error(
                "override_conflict kind=%s permissions=%s",
                kind,
                sorted(ambiguous),
            )
            raise ConfigurationError(
                f"Permissions {sorted(ambiguous)} are declared as both positive and "
                f"negative parent overrides for '{kind}'",
                details={"kind": kind, "permissions": sorted(ambiguous)},
            )
        sets = OverrideSets(positive=positive_set, negative=negative_set)
        self._by_kind[kind] = sets
        return sets

    def overrides_for(self, kind: str) -> OverrideSets:
        return self._by_kind.get(kind, EMPTY_OVERRIDES)

    def kinds(self) -> list[str]:
        return sorted(self._by_kind)


def default_registry() -> OverrideRegistry:
    registry = OverrideRegistry()
    # A hidden forum hides everything below it
    registry.register("forum", negative=[VIEWABLE_PERMISSION])
    registry.register("topic", negative=[VIEWABLE_PERMISSION])
    return registry
