"""Infrastructure helpers (settings persistence)."""
