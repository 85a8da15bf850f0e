"""Ambient services: configuration, logging, errors and template rendering."""
