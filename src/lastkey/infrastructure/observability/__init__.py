"""Observability: structured logging and correlation ids.

Usage:
    from lastkey.infrastructure.observability import (
        configure_structlog,
        get_correlation_id,
        set_correlation_id,
    )
"""

from lastkey.infrastructure.observability.correlation import (
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from lastkey.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_service",
    "set_correlation_id",
]
