"""Shared test fixtures for rediscache tests.

This package provides:
- An in-memory async Redis double (fake_redis)
- Sample cached models (sample_data)
"""
