"""Expense RBAC - roles, permissions and feature visibility.

Role-based access control and per-role feature visibility for the expense
tracker, served over HTTP and driven from a command-line tool.
"""

__version__ = "0.1.0"

from expense_rbac.infrastructure.api.app import app

__all__ = ["app", "__version__"]
