"""Adapters: sink implementations and the stdlib logging bridge."""
