"""urlmon - HTTP(S) endpoint monitoring service."""
__version__ = "1.0.0"
