"""Framework and driver integrations (optional extras)."""
