"""Internal helpers: configuration, errors, logging."""
