"""Integration tests for components working together as a system.

Coverage:
    - API endpoints with real HTTP requests through ASGITransport
    - Chat workflow from user message to stored assistant reply

External services are replaced by httpx.MockTransport handlers so the
tests run offline.
"""
