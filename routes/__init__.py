from .health_route import health_router
from .products_route import products_router
