"""git-autopilot: watch working directories and commit changes as they happen."""

__version__ = "0.1.0"
