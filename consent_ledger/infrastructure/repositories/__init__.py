"""Repository adapters: in_memory (tests / local dev) and postgres."""
