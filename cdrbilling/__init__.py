"""TCP menu servers and clients for sign-up, login and CDR-based customer billing reports."""

__version__ = "0.1.0"