"""Core engine: graph model, execution context, runner and validation."""
