"""Core install and init pipelines."""
