"""Configuration and input validation."""
