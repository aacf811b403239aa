"""
models/customer.py
------------------
Domain model for customers, mapped onto the TblCustomers table.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from mapping.metadata import column, table


@table("TblCustomers")
@dataclass
class Customer:
    """
    Represents a single customer.

    Every field defaults to None so that partial instances can be used for
    sparse updates.

    Attributes:
        id: Primary key, column CustomerId (None for new records).
        name: Display name, column CustomerName.
        postal_address: Free-form postal address.
        email: Contact e-mail.
        birth_date: Date of birth.
    """
    id: Optional[int] = column("CustomerId", key=True)
    name: Optional[str] = column("CustomerName")
    postal_address: Optional[str] = column("PostalAddress")
    email: Optional[str] = column("Email")
    birth_date: Optional[date] = column("BirthDate")

    def __str__(self) -> str:
        return f"#{self.id} {self.name or '-'} <{self.email or '-'}>"
