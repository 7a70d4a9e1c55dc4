"""Provider health checks — confirm each debater is reachable before starting."""

import asyncio
import logging

from src.providers.base import AIProvider

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: AIProvider) -> tuple[str, bool, str]:
    """Check a single provider. Returns (name, ok, error_message)."""
    try:
        ok = await asyncio.wait_for(provider.check_available(), timeout=_TIMEOUT_SEC)
    except TimeoutError:
        return name, False, f"no answer within {_TIMEOUT_SEC:g}s"
    except Exception as exc:
        return name, False, str(exc)
    if not ok:
        return name, False, "provider reported unavailable"
    return name, True, ""


async def run_health_checks(
    providers: dict[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Check all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, p) for n, p in providers.items()))
    for name, ok, err in results:
        if not ok:
            logger.warning("Provider %s failed health check: %s", name, err)
    return {name: (ok, err) for name, ok, err in results}
