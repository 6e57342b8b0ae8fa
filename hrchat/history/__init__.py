"""Per-user chat history."""
