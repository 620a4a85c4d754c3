"""Value objects produced and consumed by the engine."""
