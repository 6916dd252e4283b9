import logging
import os

from .config import Settings, get_settings
from .errors import ConfigurationError
from .permissions.overrides import OverrideRegistry, default_registry
from .permissions.values import PermissionValue

logger = logging.getLogger("forum_core")


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level_name: str | None = None) -> int:
    log_level = _resolve_log_level(level_name or os.getenv("LOG_LEVEL", "INFO"))
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(log_level)
    return log_level


def run_required_startup_checks(settings: Settings | None = None) -> OverrideRegistry:
    """Validate permission configuration before serving any request.

    Raises:
        ConfigurationError: Override sets overlap or the default is not ALLOW/DENY.
    """
    settings = settings or get_settings()
    registry = default_registry()
    try:
        default = PermissionValue(settings.permission_default)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown permission default '{settings.permission_default}'"
        ) from exc
    if not default.is_set:
        raise ConfigurationError("Permission default must be ALLOW or DENY")

    logger.info(
        "permission_configuration kinds=%s default=%s max_depth=%s",
        ",".join(registry.kinds()),
        default.value,
        settings.permission_max_depth,
    )
    return registry
