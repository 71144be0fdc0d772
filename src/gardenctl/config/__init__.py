"""Configuration — TOML discovery, pydantic-settings, structlog wiring."""
