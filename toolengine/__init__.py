"""Tool-call extraction and dispatch engine."""
