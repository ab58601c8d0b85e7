from expense_rbac.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    close_database,
    get_db_manager,
    init_database,
)
from expense_rbac.infrastructure.persistence.role_data_store import SqlAlchemyRoleDataStore

__all__ = [
    "Base",
    "DatabaseManager",
    "SqlAlchemyRoleDataStore",
    "get_db_manager",
    "init_database",
    "close_database",
]
