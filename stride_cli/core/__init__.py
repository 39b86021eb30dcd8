"""Session engine, companion channel and persistence."""
