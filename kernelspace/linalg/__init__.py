"""Small dense linear algebra helpers."""

from .matrix import (
    ExpandingMatrix,
    outer_product_update,
    bordered_inverse_update,
    removal_inverse_update,
)

__all__ = [
    "ExpandingMatrix",
    "outer_product_update",
    "bordered_inverse_update",
    "removal_inverse_update",
]
