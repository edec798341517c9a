"""Pricing services."""
