"""HTTP entrypoint for optimization runs."""
