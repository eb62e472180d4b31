"""Domain layer: entities, value objects, and business exceptions.

No imports from application or infrastructure.
"""
