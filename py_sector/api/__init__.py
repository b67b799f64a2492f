"""HTTP service for sector generation."""
