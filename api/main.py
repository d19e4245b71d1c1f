"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from api import routes

logging.basicConfig(level=logging.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # release camera/model if the loop is still running at shutdown
    routes.session.stop()


app = FastAPI(title="Face Mesh Live API", version="1.0.0", lifespan=lifespan)
app.include_router(routes.router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
