"""Configuration, logging, database and error plumbing."""
