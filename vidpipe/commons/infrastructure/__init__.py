"""Storage, database and queue providers shared across layers."""
