"""Domain layer — tiers, specifiers, package models, error taxonomy.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
