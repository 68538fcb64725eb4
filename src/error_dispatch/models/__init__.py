"""Data models for configuration and error classification."""
