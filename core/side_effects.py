# core/side_effects.py

from typing import Any, Callable, Optional

from pydantic import BaseModel

from core.errors import extract_supabase_error
from core.logging_config import logger


class SideEffectResult(BaseModel):
    """
    Outcome of a non-critical step (notification fan-out, history cleanup,
    dependent-row bookkeeping). The primary operation logs it and carries on;
    it is never turned into a failed response.
    """

    name: str
    ok: bool
    data: Any = None
    error: Optional[str] = None


def non_critical(name: str, func: Callable, *args, **kwargs) -> SideEffectResult:
    """Run `func`, converting any exception into a failed SideEffectResult."""
    try:
        data = func(*args, **kwargs)
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.warning(f"Non-critical step '{name}' failed: {detail}")
        return SideEffectResult(name=name, ok=False, error=detail)

    if isinstance(data, SideEffectResult):
        if not data.ok:
            logger.warning(f"Non-critical step '{name}' failed: {data.error}")
        return data

    return SideEffectResult(name=name, ok=True, data=data)
