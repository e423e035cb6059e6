"""
Domain records.

These plain dataclasses are what the store reads and writes.  They are
independent of the JSON shapes exchanged over HTTP, which live in
``schemas``.
"""
