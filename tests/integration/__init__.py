"""Integration tests for pymelcloudhvac library.

These tests use real MELCloud credentials from the .env file and make actual
API calls. They only read state; no command is sent to a device. They are
marked with @pytest.mark.integration and skipped when credentials are missing.

To run integration tests:
    pytest tests/integration -v -m integration

Environment variables required in .env:
    MELCLOUD_EMAIL: Account email
    MELCLOUD_PASSWORD: Account password
    MELCLOUD_BASE_URL: API base URL (optional, defaults to production)
"""
