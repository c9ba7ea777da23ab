"""Domain layer — value types, entities, fee rules, and ports.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
Entities are frozen snapshots: every transition returns a new instance.
"""
