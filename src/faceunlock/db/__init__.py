"""Database engine, session factory and persistence gateway."""
