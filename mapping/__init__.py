"""
mapping/ - Object/Table Mapping
===============================
Turns annotated dataclasses into table metadata, parameterized SQL, and back
into instances. Pure functions only: no connection handling lives here.
"""
