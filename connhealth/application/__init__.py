"""Application layer - connectivity and health services."""
