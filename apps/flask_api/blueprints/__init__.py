"""Flask API Blueprints package.

This package contains Flask Blueprint modules for each API domain:
- health: Health check, version and OpenAPI endpoints
- history: PI history query endpoints
"""

# Import blueprints for convenient registration
from apps.flask_api.blueprints.health import health_bp
from apps.flask_api.blueprints.history import history_bp

__all__ = [
    "health_bp",
    "history_bp",
]
