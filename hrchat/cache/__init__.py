"""Redis cache client."""
