"""Rate-limited request queue and response-driven limiter state machine."""

from discord_rest.limiter.descriptor import Completion, HttpMethod, OnComplete, RequestDescriptor
from discord_rest.limiter.handler import ResponseHandler, is_response_success
from discord_rest.limiter.queue import DispatchQueue
from discord_rest.limiter.scheduler import SchedulerLoop
from discord_rest.limiter.state import LimiterSnapshot, LimiterState

__all__ = [
    "Completion",
    "DispatchQueue",
    "HttpMethod",
    "LimiterSnapshot",
    "LimiterState",
    "OnComplete",
    "RequestDescriptor",
    "ResponseHandler",
    "SchedulerLoop",
    "is_response_success",
]
