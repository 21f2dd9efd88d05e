"""Web framework adapters exposing health endpoints."""
