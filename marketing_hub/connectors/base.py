"""
Base Connector Class

Google API connectors inherit from this base class.
Provides request execution with a hard timeout and maps vendor failures
onto UpstreamError.
"""
import concurrent.futures
from typing import Any, Optional

import httplib2
from googleapiclient.errors import HttpError

from marketing_hub.config import get_settings
from marketing_hub.exceptions import UpstreamError
from marketing_hub.utils.logger import log


class BaseConnector:
    """
    Base class for Google API connectors

    Implements common patterns:
    - Timeout-aware httplib2 transport
    - Per-request hard timeout
    - HttpError / timeout -> UpstreamError
    """

    def __init__(self, service_name: str, timeout: Optional[int] = None):
        """
        Initialize connector

        Args:
            service_name: Name used in logs and errors (e.g., 'google_drive')
            timeout: Per-call timeout in seconds (defaults to settings)
        """
        self.service_name = service_name
        self.timeout = timeout or get_settings().external_call_timeout_seconds
        self.service = None

    def _http(self) -> httplib2.Http:
        return httplib2.Http(timeout=self.timeout)

    def _execute(self, request, description: str) -> Any:
        """
        Execute a Google API request with a timeout.

        The google-api-python-client uses blocking httplib2 calls, so the
        call runs in a worker thread with a hard limit. No retries: the
        caller or scheduler re-triggers.

        Raises:
            UpstreamError: vendor returned non-success (vendor status) or
                the call timed out (504)
        """
        # Not a `with` block: exiting one waits for the stalled call.
        pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        future = pool.submit(request.execute)
        try:
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            log.error(f"{self.service_name}: {description} timed out after {self.timeout}s")
            raise UpstreamError(
                f"{description} timed out after {self.timeout}s",
                status_code=504,
            )
        except HttpError as e:
            status = int(e.resp.status) if e.resp is not None else None
            text = _error_text(e)
            log.error(f"{self.service_name}: {description} failed ({status}): {text}")
            raise UpstreamError(f"{description} failed", status_code=status, details=text) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            log.error(f"{self.service_name}: {description} failed: {str(e)}")
            raise UpstreamError(f"{description} failed", details=str(e)) from e
        finally:
            pool.shutdown(wait=False)


def _error_text(error: HttpError) -> str:
    content = error.content
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content or error)
