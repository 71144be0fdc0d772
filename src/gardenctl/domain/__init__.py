"""Domain layer — payload variants, slugs, ordering rules, upload lifecycle.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
