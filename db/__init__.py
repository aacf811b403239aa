"""
db/ - Database Layer
====================
Handles connections to the backing store: the connection pool and the
error types raised by the data-access layer.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
