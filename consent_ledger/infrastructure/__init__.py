"""Infrastructure adapters: storage, clock, notifications."""
