"""Close Circle journaling backend."""
