"""Configuration loading and schemas."""
