"""Infrastructure layer - configuration, logging, HTTP client, storage, timers."""
