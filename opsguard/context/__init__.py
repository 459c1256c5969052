"""Application context and activity logging."""
