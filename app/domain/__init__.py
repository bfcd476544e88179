"""
Domain layer for the commerce API.

This layer contains business entities and value objects, independent of
HTTP, persistence and provider concerns.
"""
