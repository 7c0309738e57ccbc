"""Template rendering for TX3 project files."""
