"""Domain models for health analytics."""
