"""Command-line and HTTP client for the address coordinator."""
