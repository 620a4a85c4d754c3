"""Static engine configuration (dataclasses and constant tables)."""
