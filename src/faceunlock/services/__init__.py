"""Cache-backed controllers and their collaborators."""
