"""IDCS client assertions, token exchange and audit event retrieval."""
