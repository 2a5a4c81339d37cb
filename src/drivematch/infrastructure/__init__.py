"""Infrastructure adapters (persistence) for the matching engine."""
