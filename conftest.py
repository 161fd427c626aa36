"""Top-level pytest configuration for fixture registration."""

pytest_plugins = [
    "tests.fixtures.external_apis.provider_api",
]
