from .Product import ErrorMessage, Product, ProductPayload
from .ProductDB import Base, ProductDB
