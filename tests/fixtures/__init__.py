"""
Pytest fixtures for the InlineImages test suite.

Fixtures are organized by subsystem:
- http_mocking: HTTPX MockTransport image server and response builders
- documents: Image bytes, expected data URIs and on-disk image helpers
"""
