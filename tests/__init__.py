"""Test suite for the equipstic client.

Test Structure:
- unit/: tests with the EquipsTIC API mocked through respx
- unit/libs/inventory/: tests for the inventory library
- conftest.py: Shared fixtures and pytest configuration

Run tests with:
    pytest tests/
    pytest tests/ -v  # verbose output
"""
