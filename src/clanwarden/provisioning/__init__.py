"""
Provisioning Package

Declarative clan server layout and the engine that applies it idempotently.
"""

from .spec import EVERYONE, ChannelKind, ChannelSpec, Overwrite, build_layout, resolve_overwrites
from .engine import ChannelIndex, ProvisioningEngine, ProvisionReport

__all__ = [
    "EVERYONE",
    "ChannelKind",
    "ChannelSpec",
    "Overwrite",
    "build_layout",
    "resolve_overwrites",
    "ChannelIndex",
    "ProvisioningEngine",
    "ProvisionReport",
]
