"""Configuration, logging, errors, sessions and security helpers."""
