"""Adapters implementing domain ports."""
