"""Intent execution against store, cache and broadcaster."""
