"""Entry point for 'python -m expense_rbac' command.

This module allows the CLI to be invoked using
'python -m expense_rbac serve'.
"""

from expense_rbac.cli import main

if __name__ == "__main__":
    main()
