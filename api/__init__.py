"""HTTP API for the trending subsystem."""
