"""Top-level strata commands (one module per command)."""
