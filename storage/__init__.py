"""Response cache, retry/backoff and data directory persistence."""
