"""Merge per-agent memory files into one unified file and symlink them."""
