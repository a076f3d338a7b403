"""Utility helpers for Kibble."""
