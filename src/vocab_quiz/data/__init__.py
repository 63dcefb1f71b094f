"""Bundled vocabulary list."""
