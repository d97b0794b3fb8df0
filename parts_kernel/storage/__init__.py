"""Persistence adapter: key-value backends, record codec, live/snapshot slots."""
