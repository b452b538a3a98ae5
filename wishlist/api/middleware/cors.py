"""
CORS Configuration

Configures Cross-Origin Resource Sharing settings for the browser client.
The session cookie is SameSite=Strict, so credentials only flow from origins
listed here.
"""

from typing import List, Optional
from dataclasses import dataclass, field
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    # Allowed origins
    allowed_origins: List[str] = field(default_factory=list)

    # Allow credentials (the session cookie)
    allow_credentials: bool = True

    # Allowed HTTP methods
    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PATCH", "DELETE", "OPTIONS"
    ])

    # Allowed headers
    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Content-Type",
        "X-Request-ID",
    ])

    # Headers to expose to the browser
    expose_headers: List[str] = field(default_factory=lambda: [
        "X-Request-ID",
    ])

    # Max age for preflight cache (in seconds)
    max_age: int = 3600


# Environment-specific configurations
CORS_CONFIGS = {
    "development": lambda: CORSConfig(
        allowed_origins=[
            "http://localhost:3000",      # React dev server
            "http://127.0.0.1:3000",
        ],
    ),
    "production": lambda: CORSConfig(
        allowed_origins=[],
        max_age=7200,
    ),
}


def get_cors_config(environment: Optional[str] = None) -> CORSConfig:
    """Get CORS configuration for the environment."""
    if environment is None:
        environment = os.getenv("WISHLIST_ENV", "development")

    config = CORS_CONFIGS.get(environment, CORS_CONFIGS["development"])()

    # Allow additional origins from environment variable
    extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if extra_origins:
        config.allowed_origins.extend(
            origin.strip() for origin in extra_origins.split(",") if origin.strip()
        )

    return config


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance.
        config: CORS configuration. If None, loads from environment.
    """
    if config is None:
        config = get_cors_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=config.allow_credentials,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
