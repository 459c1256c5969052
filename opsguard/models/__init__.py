"""Data models and collaborator protocols."""
