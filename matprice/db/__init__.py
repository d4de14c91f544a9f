"""Database layer for matprice with async SQLAlchemy."""

from matprice.db.connection import close_db, init_db, store_session
from matprice.db.models import Base, MaterialModel, MaterialPriceModel, PriceSourceModel
from matprice.db.store import SqlPriceStore

__all__ = [
    "Base",
    "MaterialModel",
    "PriceSourceModel",
    "MaterialPriceModel",
    "SqlPriceStore",
    "store_session",
    "init_db",
    "close_db",
]
