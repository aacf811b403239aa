"""
main.py
-------
Command-line driver for the customer repository.

Usage:
    python main.py list
    python main.py get 8
    python main.py create --name Ugo --email ugo@x.com --birth-date 1990-04-01
    python main.py update 8 --name Ugo
    python main.py delete 8

The connection string is read from DB_CONNECTION_STRING (or .env).
"""

import argparse
import sys
from datetime import date
from typing import Optional

from db.connection import close_pool
from db.errors import DataAccessError
from models.customer import Customer
from repositories.customer_repo import CustomerRepository
from utils.logger import get_logger

logger = get_logger(__name__)


def _add_customer_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name")
    parser.add_argument("--email")
    parser.add_argument("--address", dest="postal_address")
    parser.add_argument("--birth-date", type=date.fromisoformat, help="YYYY-MM-DD")


def _customer_from_args(args: argparse.Namespace) -> Customer:
    return Customer(
        name=args.name,
        email=args.email,
        postal_address=args.postal_address,
        birth_date=args.birth_date,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CRUD operations on customers.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all customers")

    get = sub.add_parser("get", help="Show one customer")
    get.add_argument("id", type=int)

    create = sub.add_parser("create", help="Insert a customer")
    _add_customer_fields(create)

    update = sub.add_parser("update", help="Update the given fields of a customer")
    update.add_argument("id", type=int)
    _add_customer_fields(update)

    delete = sub.add_parser("delete", help="Delete a customer")
    delete.add_argument("id", type=int)

    return parser


def run(args: argparse.Namespace, repo: CustomerRepository) -> int:
    """Execute one command. Returns the process exit code."""
    if args.command == "list":
        customers = repo.find_all()
        print("All Customers:")
        for customer in customers:
            print(customer)
        return 0

    if args.command == "get":
        customer = repo.find_by_id(args.id)
        if customer is None:
            print(f"Customer #{args.id} not found.")
            return 1
        print(customer)
        return 0

    if args.command == "create":
        ok = repo.create(_customer_from_args(args))
    elif args.command == "update":
        ok = repo.update(args.id, _customer_from_args(args))
    else:
        ok = repo.delete(args.id)

    print("OK" if ok else "No rows affected.")
    return 0 if ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args, CustomerRepository())
    except DataAccessError as e:
        logger.error(f"{args.command} failed: {e}")
        return 2
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
