"""Read-only queries over an InventoryStore."""
