"""HTTP API surface for the frontend."""
