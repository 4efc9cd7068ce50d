"""Core infrastructure for configuration, logging and side channels."""
