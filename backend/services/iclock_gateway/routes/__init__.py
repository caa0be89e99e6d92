"""Routes package for the iclock gateway."""

from . import commands, devices, health, iclock, records, stats, tenant

__all__ = [
    "commands",
    "devices",
    "health",
    "iclock",
    "records",
    "stats",
    "tenant",
]
