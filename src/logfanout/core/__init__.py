"""Core domain: levels, entries, ports, context and statistics."""
