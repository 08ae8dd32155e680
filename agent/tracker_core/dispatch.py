"""
Tagged send results and the bounded retry loop.

Nothing here knows about threads or timers: a send is any zero-argument
callable returning a DispatchResult, so tests can inject fake transports.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from .config import log
from .constants import MIN_DENY_CODE, SEND_ATTEMPTS, SEND_RETRY_DELAY_SEC


class ResponseType(Enum):
    SUCCESS = "SUCCESS"        # < 400 response
    DENIED = "DENIED"          # >= 400 response
    SEND_ERROR = "SEND_ERROR"  # error while trying to send


@dataclass
class PostResponse:
    code: int
    message: str = ""


@dataclass
class DispatchResult:
    type: ResponseType
    message: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self):
        return self.type == ResponseType.SUCCESS


def classify(post):
    """Run one POST and sort the outcome into SUCCESS / DENIED / SEND_ERROR."""
    try:
        response = post()
    except (requests.RequestException, OSError) as e:
        return DispatchResult(ResponseType.SEND_ERROR, error=e)
    if response.code < MIN_DENY_CODE:
        return DispatchResult(ResponseType.SUCCESS, message=response.message)
    return DispatchResult(ResponseType.DENIED, message=response.message)


def send_with_retry(send_once, attempts=SEND_ATTEMPTS, delay=SEND_RETRY_DELAY_SEC,
                    sleep=time.sleep, what="data"):
    """
    Call send_once() until it stops returning SEND_ERROR, at most `attempts`
    times, sleeping `delay` seconds in between. Blocks the calling thread.
    """
    result = send_once()
    tries = 1
    while result.type == ResponseType.SEND_ERROR and tries < attempts:
        log.error("Failed to send %s to PaceMan.gg (%s), retrying in %ds...",
                  what, result.error, delay)
        sleep(delay)
        result = send_once()
        tries += 1
    return result
