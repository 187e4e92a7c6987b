from .orders import OrdersRepository
from .templates import TemplatesRepository
from . import models

__all__ = ["OrdersRepository", "TemplatesRepository", "models"]
