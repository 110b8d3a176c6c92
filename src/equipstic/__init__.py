"""EquipsTIC: asynchronous client for the university IT asset inventory API.

The client turns domain lookups (campuses, buildings, brands, equipment
records...) into calls against the EquipsTIC REST API, interprets its
response envelope and resolves the partially populated relations of
equipment records.
"""

__version__ = "1.0.0"
