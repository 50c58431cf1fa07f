"""Configuration, logging and persistence for the API."""
