"""runtime wiring and entry point."""
