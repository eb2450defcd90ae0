"""Storage adapters, serialization and persistence synchronization."""
