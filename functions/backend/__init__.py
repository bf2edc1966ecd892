"""
Backend package for the Last Used API.

Provides the per-user data-access layer, document store backends (in-memory,
Firestore, SQL) and a FastAPI application exposing them over HTTP.
"""
