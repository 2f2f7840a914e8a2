"""Unit tests for TransRelay.

This package contains test modules for all components of the translation relay.
Tests use pytest with asyncio support and replace HTTP calls with fake transports via monkeypatch.
"""
