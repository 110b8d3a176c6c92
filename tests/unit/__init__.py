"""Unit tests for the equipstic client.

All HTTP traffic is mocked with respx, so these tests need neither
credentials nor network access to the EquipsTIC API.
"""
