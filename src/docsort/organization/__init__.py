"""Naming, placement, and execution of organize runs."""
