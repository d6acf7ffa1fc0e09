"""
FastAPI routers for all API endpoints.

Each module defines a router for one concern (health, recommendations).
Routes validate input with Pydantic, delegate to the service layer, and map
service errors to HTTP responses.
"""
