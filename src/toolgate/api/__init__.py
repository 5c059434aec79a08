"""toolgate HTTP API."""
