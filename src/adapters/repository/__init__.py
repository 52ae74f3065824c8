"""Repository adapters - Database implementations."""

from .postgres import PostgresAccountDirectory, PostgresTokenStore, run_migrations

__all__ = ["PostgresAccountDirectory", "PostgresTokenStore", "run_migrations"]
