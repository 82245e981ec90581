"""
Backend package for the marketplace API.

A FastAPI application serving PIN management, registration, location
reference data, fiscal verification, subscription checkout and provider
search, backed by pluggable document store, storage and auth clients.
"""
