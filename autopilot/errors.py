"""Error types raised by the watch pipeline."""


class AutoPilotError(Exception):
    """Base class for all git-autopilot errors"""


class HomeDirError(AutoPilotError):
    def __init__(self, message: str = "Unable to determine home directory"):
        super().__init__(message)


class ConfigError(AutoPilotError):
    """Configuration file could not be read, parsed or written"""


class CredentialSourceError(AutoPilotError):
    """A credential or identity store is unreadable or unparsable"""


class RepositoryAccessError(AutoPilotError):
    """Repository could not be opened or its status could not be listed"""


class VcsOperationError(AutoPilotError):
    """Stage, commit or push failed"""


class MissingCredentialsError(AutoPilotError):
    def __init__(self, message: str = "Push attempted without login credentials"):
        super().__init__(message)
