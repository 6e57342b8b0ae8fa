"""Live-update broadcasting and admin notifications."""
