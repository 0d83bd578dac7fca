"""
Boundary layer: adapters for the database, vector store, cache and model
providers. Subpackages are imported directly.
"""
