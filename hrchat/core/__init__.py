"""Configuration, errors, intents and the chat engine."""
