"""Ordered fallback chains.

Several lookups (status ping variants, mod/version probing, banner patterns)
try a list of alternatives in order and keep the first answer. The lists are
plain data so a new server flavour only needs a new entry.
"""

from typing import Callable, Iterable, Optional, TypeVar

from mc_ctrl.common.logging_config import get_logger

T = TypeVar('T')

Attempt = Callable[[], Optional[T]]


def first_success(attempts: Iterable[Attempt]) -> Optional[T]:
    """Return the first non-None result; an attempt that raises counts as no result."""
    logger = get_logger(__name__)
    for attempt in attempts:
        try:
            value = attempt()
        except Exception as exc:  # noqa: BLE001 - each alternative may fail in its own way
            logger.debug("Attempt %s failed: %s", _describe(attempt), exc)
            continue
        if value is not None:
            return value
    return None


def _describe(attempt) -> str:
    name = getattr(attempt, '__name__', None)
    if name is None and hasattr(attempt, 'func'):
        name = getattr(attempt.func, '__name__', None)
    return name or repr(attempt)
