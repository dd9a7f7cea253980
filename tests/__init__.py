"""Test package for Dealroom.

Structure:
    - unit/: Individual function and class tests
    - integration/: API endpoints and full chat workflows

Backend and webhook traffic goes through httpx.MockTransport, timers are
driven by hand. Leverages pytest with pytest-check for soft assertions.
"""
