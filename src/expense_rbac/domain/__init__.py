"""Domain layer: entities, exceptions and services with no framework dependencies."""
