"""
Effective permission resolution over the forum containment tree.

Each entity carries its own explicit values per role; the parent chain is
walked through the gateway by identity and the child kind's override sets
decide whether the parent's result can be overridden.
"""
import logging
import uuid

from ..config import Settings
from ..domain.ports.permission import (
    EntityLookup,
    PermissionEntity,
    PermissionValueSource,
)
from ..errors import ConfigurationError
from .overrides import OverrideRegistry
from .values import PermissionValue, Subject

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

Identity = tuple[str, uuid.UUID]


class PermissionResolver:
    def __init__(
        self,
        entities: EntityLookup,
        values: PermissionValueSource,
        registry: OverrideRegistry,
        *,
        default: PermissionValue = PermissionValue.DENY,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if not default.is_set:
            raise ConfigurationError("Permission default must be ALLOW or DENY")
        if max_depth <= 0:
            raise ConfigurationError("Permission max depth must be positive")
        self._entities = entities
        self._values = values
        self._registry = registry
        self._default = default
        self._max_depth = max_depth

    @classmethod
    def from_settings(
        cls,
        entities: EntityLookup,
        values: PermissionValueSource,
        registry: OverrideRegistry,
        settings: Settings,
    ) -> "PermissionResolver":
        return cls(
            entities,
            values,
            registry,
            default=PermissionValue(settings.permission_default),
            max_depth=settings.permission_max_depth,
        )

    @property
    def default(self) -> PermissionValue:
        return self._default

    async def resolve(
        self,
        entity: PermissionEntity,
        permission: str,
        subject: Subject,
    ) -> PermissionValue:
        """Compute ALLOW or DENY for ``permission`` on ``entity``.

        Raises:
            ConfigurationError: The parent chain loops or exceeds the depth limit.
            NotFoundError: A parent reference points at a missing entity.
        """
        return await self._resolve(entity, permission, subject, ())

    async def is_allowed(
        self,
        entity: PermissionEntity,
        permission: str,
        subject: Subject,
    ) -> bool:
        return await self.resolve(entity, permission, subject) is PermissionValue.ALLOW

    async def _resolve(
        self,
        entity: PermissionEntity,
        permission: str,
        subject: Subject,
        chain: tuple[Identity, ...],
    ) -> PermissionValue:
        identity = (entity.permission_kind, entity.id)
        if identity in chain:
            logger.error(
                "permission_hierarchy_cycle kind=%s id=%s depth=%s",
                identity[0],
                identity[1],
                len(chain),
            )
            raise ConfigurationError(
                f"Parent chain of {identity[0]} {identity[1]} contains a cycle",
                details={"kind": identity[0], "id": str(identity[1])},
            )
        if len(chain) >= self._max_depth:
            logger.error(
                "permission_hierarchy_too_deep kind=%s id=%s max_depth=%s",
                identity[0],
                identity[1],
                self._max_depth,
            )
            raise ConfigurationError(
                f"Parent chain exceeds the maximum depth of {self._max_depth}",
                details={"kind": identity[0], "id": str(identity[1])},
            )
        chain = chain + (identity,)

        own = await self._own_value(entity, permission, subject)
        parent_reference = entity.parent_reference()
        if parent_reference is None:
            return own if own.is_set else self._default

        parent = await self._entities.find_by_id(*parent_reference)
        parent_result = await self._resolve(parent, permission, subject, chain)

        overrides = self._registry.overrides_for(entity.permission_kind)
        if permission in overrides.negative and parent_result is PermissionValue.DENY:
            result = PermissionValue.DENY
        elif permission in overrides.positive and parent_result is PermissionValue.ALLOW:
            result = PermissionValue.ALLOW
        elif own.is_set:
            result = own
        else:
            result = parent_result

        logger.debug(
            "permission_resolved kind=%s id=%s permission=%s own=%s parent=%s result=%s",
            identity[0],
            identity[1],
            permission,
            own.value,
            parent_result.value,
            result.value,
        )
        return result

    async def _own_value(
        self,
        entity: PermissionEntity,
        permission: str,
        subject: Subject,
    ) -> PermissionValue:
        if not subject.role_ids:
            return PermissionValue.UNSET
        values = await self._values.get_values(
            entity.permission_kind, entity.id, permission, subject.role_ids
        )
        return PermissionValue.combine(values)
