"""Maintenance scripts for the license storage database."""
