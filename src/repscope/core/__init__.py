"""Core infrastructure: configuration glue, logging, errors, constants."""
