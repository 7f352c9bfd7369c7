"""Reaction domain."""
