"""Shared models, clients and contracts for the site builder services."""
