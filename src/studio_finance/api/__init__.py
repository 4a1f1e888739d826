"""HTTP API for the studio finance engine."""
