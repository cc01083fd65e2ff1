"""
Fulfillment Django HTTP adapter.
Thin framework glue over the fulfillment engines.
"""

from adapters.django_api.wiring import (
    FulfillmentDependencies,
    build_dependencies,
    reset_dependencies,
)

__all__ = [
    "FulfillmentDependencies",
    "build_dependencies",
    "reset_dependencies",
]
