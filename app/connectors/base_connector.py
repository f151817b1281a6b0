"""
Base connector class for the Google reporting sources
"""
import asyncio
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from app.utils.logger import log
from app.utils.retry import calculate_backoff, is_retryable_error


class BaseConnector(ABC):
    """Base class for per-dealership reporting connectors"""

    RETRY_MAX_ATTEMPTS = 3
    RETRY_BASE_DELAY = 2.0  # seconds
    RETRY_MAX_DELAY = 30.0  # seconds

    def __init__(self, name: str, credentials_path: Optional[str]):
        self.name = name
        self.credentials_path = credentials_path

    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials_path) and os.path.exists(self.credentials_path)

    @abstractmethod
    async def connect(self) -> bool:
        """Build the API client from the service account file"""

    @abstractmethod
    async def fetch_data(self, start_date: datetime, end_date: datetime) -> Dict[str, Any]:
        """Fetch the dashboard summary for the date range"""

    async def fetch(self, start_date: datetime, end_date: datetime) -> Dict[str, Any]:
        """Connect if needed and fetch with retry; raises after the last failed attempt."""
        if not await self.connect():
            raise ConnectionError(f"Could not connect to {self.name}")
        return await self._retry_operation(lambda: self.fetch_data(start_date, end_date), "fetch_data")

    async def _retry_operation(self, operation, operation_name: str = "operation") -> Any:
        for attempt in range(1, self.RETRY_MAX_ATTEMPTS + 1):
            try:
                result = operation()
                if asyncio.iscoroutine(result):
                    result = await result
                return result
            except Exception as e:
                if attempt >= self.RETRY_MAX_ATTEMPTS or not is_retryable_error(e):
                    raise
                delay = calculate_backoff(attempt, base_delay=self.RETRY_BASE_DELAY, max_delay=self.RETRY_MAX_DELAY)
                log.warning(
                    f"{self.name} {operation_name} attempt {attempt} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)
        raise RuntimeError("Retry exhausted")
