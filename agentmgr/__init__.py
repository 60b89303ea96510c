"""agentmgr — lifecycle management for third-party CLI agents."""

__version__ = "0.1.0"
