"""SQLAlchemy plumbing for the key-value storage backend."""
