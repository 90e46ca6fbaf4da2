"""Athena tutoring backend."""
