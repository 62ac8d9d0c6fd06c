"""Integration tests for the Square gift card client.

These tests run against the Square sandbox and require valid credentials.

Setup:
    1. Set environment variables (via .env.integration or otherwise):
       - SQUARE_ACCESS_TOKEN (a sandbox access token)
       - SQUARE_LOCATION_ID
       - SQUARE_OAUTH_CLIENT_ID / SQUARE_OAUTH_CLIENT_SECRET (optional,
         for the OAuth checks)

    2. Run integration tests:
       pytest tests/integration -m integration
"""
