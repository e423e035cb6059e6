"""
Service layer abstraction.

Services encapsulate the SQL executed against the subscriptions table.
API handlers depend on them through FastAPI dependencies so that tests
can substitute an in‑memory implementation.
"""
