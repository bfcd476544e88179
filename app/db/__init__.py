"""
Módulo de acceso a datos.

- ConnDB / UserRepository: base de datos local de usuarios
- square_clients: cliente REST de Square (catálogo, clientes, pedidos, pagos)
"""

from app.db.connection import ConnDB, close_database, get_db_connection, initialize_database
from app.db.models import Base, User
from app.db.user_repository import UserRepository

__all__ = [
    "Base",
    "ConnDB",
    "User",
    "UserRepository",
    "close_database",
    "get_db_connection",
    "initialize_database",
]
