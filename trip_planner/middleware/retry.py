import asyncio
import logging
import random
from typing import Any, Awaitable, Callable

from trip_planner.errors import GatewayTimeoutError, ModelGatewayError, ToolExecutionError
from trip_planner.middleware.event_collector import emit_event

logger = logging.getLogger(__name__)

MODEL_BACKOFF_FACTOR = 2.0
TOOL_BACKOFF_FACTOR = 2.0


def _backoff(initial_delay: float, factor: float, attempt: int) -> float:
    delay = initial_delay * (factor ** attempt)
    return delay + random.uniform(0, delay * 0.5)


async def retry_model(
    call: Callable[[], Awaitable[Any]],
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = MODEL_BACKOFF_FACTOR,
) -> Any:
    """Retry a model call on transient gateway failures with exponential backoff + jitter.

    Timeouts are not retried: the caller's deadline is already spent.
    """
    for attempt in range(max_attempts):
        try:
            result = await call()
        except GatewayTimeoutError as e:
            logger.error("Model call timed out on attempt %d/%d: %s", attempt + 1, max_attempts, e)
            emit_event(source="retry_model", status="failed", message="Model call timed out")
            raise
        except ModelGatewayError as e:
            if attempt == max_attempts - 1:
                logger.error(
                    "Model call failed after %d attempts. Final error: %s: %s",
                    max_attempts, type(e).__name__, e,
                )
                emit_event(
                    source="retry_model",
                    status="failed",
                    message=f"Model call failed after {max_attempts} attempts",
                    details={"error": f"{type(e).__name__}: {e}", "attempts": max_attempts},
                )
                raise
            sleep_time = _backoff(initial_delay, backoff_factor, attempt)
            logger.warning(
                "Model call attempt %d/%d failed (%s: %s), retrying in %.1fs",
                attempt + 1, max_attempts, type(e).__name__, e, sleep_time,
            )
            emit_event(
                source="retry_model",
                status="retrying",
                message=f"Model call attempt {attempt + 1}/{max_attempts} failed, retrying in {sleep_time:.1f}s",
                details={"error": f"{type(e).__name__}: {e}", "attempt": attempt + 1, "delay_s": round(sleep_time, 1)},
            )
            await asyncio.sleep(sleep_time)
            continue

        if attempt > 0:
            logger.info("Model call succeeded on attempt %d/%d", attempt + 1, max_attempts)
            emit_event(
                source="retry_model",
                status="recovered",
                message=f"Model call succeeded after {attempt + 1} attempts",
                details={"attempts": attempt + 1},
            )
        return result


async def retry_tool(
    tool_name: str,
    call: Callable[[], Awaitable[Any]],
    *,
    max_attempts: int = 2,
    initial_delay: float = 0.5,
    backoff_factor: float = TOOL_BACKOFF_FACTOR,
) -> Any:
    """Retry a tool handler on execution failures with exponential backoff + jitter.

    Only retryable ToolExecutionErrors are retried; rejected arguments and an
    unknown tool fail immediately.
    """
    for attempt in range(max_attempts):
        try:
            result = await call()
        except ToolExecutionError as e:
            if not e.retryable or attempt == max_attempts - 1:
                attempts = attempt + 1
                logger.error(
                    "Tool call '%s' failed after %d attempts. Final error: %s",
                    tool_name, attempts, e,
                )
                emit_event(
                    source="retry_tool",
                    status="failed",
                    message=f"Tool '{tool_name}' failed after {attempts} attempts",
                    details={"tool": tool_name, "error": str(e), "attempts": attempts},
                )
                raise
            sleep_time = _backoff(initial_delay, backoff_factor, attempt)
            logger.warning(
                "Tool call '%s' attempt %d/%d failed (%s), retrying in %.1fs",
                tool_name, attempt + 1, max_attempts, e, sleep_time,
            )
            emit_event(
                source="retry_tool",
                status="retrying",
                message=f"Tool '{tool_name}' attempt {attempt + 1}/{max_attempts} failed, retrying in {sleep_time:.1f}s",
                details={"tool": tool_name, "error": str(e), "attempt": attempt + 1, "delay_s": round(sleep_time, 1)},
            )
            await asyncio.sleep(sleep_time)
            continue

        if attempt > 0:
            logger.info("Tool call '%s' succeeded on attempt %d/%d", tool_name, attempt + 1, max_attempts)
            emit_event(
                source="retry_tool",
                status="recovered",
                message=f"Tool '{tool_name}' succeeded after {attempt + 1} attempts",
                details={"tool": tool_name, "attempts": attempt + 1},
            )
        return result
