"""Unit tests for Habitta web route modules.

Testing pattern:
    - Mount the router under test on a bare FastAPI app and use TestClient
    - Patch the route module's get_session and service call
    - Cover caller identity, request validation and error mapping
"""
