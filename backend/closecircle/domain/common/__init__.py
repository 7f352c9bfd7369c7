"""Common domain types and errors."""
