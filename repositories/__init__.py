"""
repositories/ - Data Access Layer
==================================
A single generic repository builds all SQL from the record type's mapping
metadata; per-entity repositories only bind it to a model.
Repositories receive raw rows from the database and return domain model objects.
"""
