"""Ticketing and transport booking storefront API."""
