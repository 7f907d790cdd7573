"""Core configuration, persistence and security helpers."""
