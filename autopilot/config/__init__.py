"""Configuration: runtime settings, persisted templates and credentials."""

from .config import AutoPilotConfig, DotDirectory
from .credentials import CredentialResolver
from .settings import Settings, get_settings

__all__ = [
    "AutoPilotConfig",
    "CredentialResolver",
    "DotDirectory",
    "Settings",
    "get_settings",
]
