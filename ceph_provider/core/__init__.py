"""Provider configuration and logging."""
