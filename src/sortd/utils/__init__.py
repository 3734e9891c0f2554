"""
Shared utilities: configuration, errors, logging and reporting.
"""
