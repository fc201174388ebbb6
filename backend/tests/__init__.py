"""Tubely backend test suite."""
