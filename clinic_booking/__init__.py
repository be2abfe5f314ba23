"""Clinic appointment scheduling and reminder dispatch service."""
