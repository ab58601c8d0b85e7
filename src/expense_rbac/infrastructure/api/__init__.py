"""HTTP API for roles, feature visibility and access queries."""
