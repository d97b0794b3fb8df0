"""Kernel services: registry, ledger, store, approval engine, facade."""
