"""Adapters – store and web-framework integrations for the search engine."""
