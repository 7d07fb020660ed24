"""Configuration, errors and logging shared by the whole package."""
