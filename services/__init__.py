"""Authentication and identity services."""
