"""Infrastructure adapters for the groups bounded context."""
