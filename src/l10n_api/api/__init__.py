"""HTTP API composition and shared router dependencies."""
