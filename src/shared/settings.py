"""Lookup of the ``[custom]`` settings from the active domain's configuration.

Settings are read on every call so a value changed at runtime applies to the
next command or event.
"""

from typing import Any

from protean.utils.globals import current_domain

DEFAULTS = {
    "auto_create_manufacturing_orders": True,
    "auto_create_start_offset_days": 1,
    "auto_create_duration_days": 7,
    "max_concurrent_orders": 10,
    "delivery_max_attempts": 3,
    "lock_timeout_seconds": 5,
    "dead_letter_capacity": 1000,
}


def custom_setting(name: str, domain: Any = None) -> Any:
    config = (domain or current_domain).config
    custom = config.get("custom") or {}
    if name in custom:
        return custom[name]
    return DEFAULTS[name]
