"""Easing curves applied to normalized phase progress.

Each curve maps a progress expression ``p`` (already clamped to [0, 1]) to an
eased progress expression with ``ease(0) = 0`` and ``ease(1) = 1``.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Union

from ..logging import get_logger
from .expr import Expr, ExprLike, as_expr, pow_

log = get_logger(__name__)


class Easing(str, Enum):
    """Supported easing curves."""

    LINEAR = "linear"
    EASE_IN = "ease-in"  # p^3: slow start
    EASE_OUT = "ease-out"  # 1-(1-p)^3: slow finish
    EASE_IN_OUT = "ease-in-out"  # smoothstep 3p^2-2p^3

    @classmethod
    def parse(cls, value: Union[Easing, str, None], default: Optional[Easing] = None) -> Easing:
        """Resolve an easing name, falling back to ``default`` (linear).

        Accepts ``ease_in``, ``easeIn`` and ``EASE-IN`` style spellings.
        Unknown names are not an error.
        """
        fallback = default or cls.LINEAR
        if value is None:
            return fallback
        if isinstance(value, Easing):
            return value

        key = str(value).strip()
        if key != key.lower() and key != key.upper():
            # camelCase -> kebab-case
            key = re.sub(r"(?<!^)(?=[A-Z])", "-", key)
        key = key.lower().replace("_", "-")
        for member in cls:
            if member.value == key:
                return member

        log.debug(f"Unknown easing {value!r}, using {fallback.value}")
        return fallback


def ease(progress: ExprLike, kind: Union[Easing, str, None] = Easing.LINEAR) -> Expr:
    """Apply an easing curve to a progress expression.

    Args:
        progress: Progress expression, assumed clamped to [0, 1]
        kind: Easing curve (unknown or missing values mean linear)

    Returns:
        Eased progress expression
    """
    p = as_expr(progress)
    curve = Easing.parse(kind)

    if curve is Easing.EASE_IN:
        return pow_(p, 3)
    if curve is Easing.EASE_OUT:
        return 1 - pow_(1 - p, 3)
    if curve is Easing.EASE_IN_OUT:
        return 3 * pow_(p, 2) - 2 * pow_(p, 3)
    return p
