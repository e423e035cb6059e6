"""
Pydantic schema definitions for API payloads.

Schemas are separated from the domain records in ``models`` to
decouple the API representation from persistence.  Conversion between
the two, including request validation, lives next to the schemas.
"""
