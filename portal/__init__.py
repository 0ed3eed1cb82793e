"""Barefoot Bay community portal API."""
