"""Configuration, logging and error types shared across the client."""
