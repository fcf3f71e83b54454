from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

health_router = APIRouter(tags=["Health"])

@health_router.get("/health", response_class=PlainTextResponse)
def health():
    """
    Liveness check. Does not touch the store.
    """
    return "OK"
