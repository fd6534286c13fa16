"""bale - command-line orchestrator for the bale bundling engine."""

__version__ = "0.3.0"
