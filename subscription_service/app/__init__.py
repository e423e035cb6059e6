"""
Application package initializer.

The project is organised into small layers: ``core`` holds
configuration, logging, database and error plumbing; ``models`` the
domain records the store works with; ``schemas`` the wire payloads and
their mapping onto domain records; ``services`` the SQL store; and
``api`` the HTTP routes.  ``main`` assembles them into a FastAPI
application.
"""
