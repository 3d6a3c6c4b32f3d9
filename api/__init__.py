"""REST API module for the Space platform.

This module provides HTTP endpoints for:
- SNS users (email to SNS name, staked amount)
- Spaces
- Shops, lend items, requests and hangouts inside spaces
- System health

Every error response has the shape {"error": "<message>"}.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resources import close_store, get_store

logger = logging.getLogger(__name__)

# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the configured store on startup and close it on shutdown."""
    logger.info("Initializing API...")
    await get_store()

    yield

    logger.info("Shutting down API...")
    await close_store()

# Create FastAPI app
app = FastAPI(
    title="Space API",
    description="REST API for SNS users, spaces and the rooms inside them",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()) if part != 'body')
        problems.append(f"{location}: {error.get('msg')}" if location else error.get('msg'))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request: {'; '.join(problems)}"}
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )

# Root endpoint - register this BEFORE other routers
@app.get("/")
async def root():
    """Root endpoint describing the service."""
    return {
        "message": "Space API server",
        "health": "/health",
        "endpoints": ["/api/sns", "/api/spaces", "/api/shops", "/api/lend-items", "/api/requests", "/api/hangouts"]
    }

# Import and include all routers
from .sns import router as sns_router
from .spaces import router as spaces_router
from .rooms import routers as room_routers
from .system import router as system_router

# Include all routers
app.include_router(sns_router)
app.include_router(spaces_router)
for room_router in room_routers:
    app.include_router(room_router)
app.include_router(system_router)
