"""Market dashboard backend: client state storage, alert services and runtime."""
