"""Storage service collaborators."""
