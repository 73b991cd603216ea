"""
Collibra Community Export

Exports communities, their sub-communities, domains and assets (with
attributes, relations and responsibilities) from the Collibra REST API
into local JSON or CSV files.
"""

__version__ = "0.3.0"
