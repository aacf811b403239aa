"""
repositories/customer_repo.py
-----------------------------
Data access layer for customer records.
"""

from models.customer import Customer
from repositories.crud_repo import CrudRepository


class CustomerRepository(CrudRepository[Customer, int]):
    """Repository for CRUD operations on the TblCustomers table."""

    model = Customer
