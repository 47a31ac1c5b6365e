"""
Configuration settings for the Tushare Pro API client
"""

import os
from dataclasses import dataclass, replace
from dotenv import load_dotenv

from src.utils.core.retry import BackoffStrategy, RetryPolicy

load_dotenv()

DEFAULT_BASE_URL = "https://api.tushare.pro"
DEFAULT_PAGE_LIMIT = 5000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_INTERVAL = 1.0
DEFAULT_MAX_RETRY_INTERVAL = 30.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# Response codes
CODE_OK = 0
CODE_RATE_LIMIT_EXCEEDED = 40203


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class TushareConfig:
    """Configuration class for Tushare Pro API settings"""

    # API Configuration
    TOKEN: str = ""
    BASE_URL: str = DEFAULT_BASE_URL
    REQUEST_TIMEOUT: float = DEFAULT_REQUEST_TIMEOUT

    # Pagination
    PAGE_LIMIT: int = DEFAULT_PAGE_LIMIT

    # Retry / backoff
    MAX_RETRIES: int = DEFAULT_MAX_RETRIES
    RETRY_INTERVAL: float = DEFAULT_RETRY_INTERVAL
    MAX_RETRY_INTERVAL: float = DEFAULT_MAX_RETRY_INTERVAL
    BACKOFF_MULTIPLIER: float = 2.0
    RETRY_JITTER: float = 0.1
    USE_BACKOFF: bool = True

    @property
    def retry_policy(self) -> RetryPolicy:
        """Backoff policy derived from the retry settings"""
        return RetryPolicy(
            max_retries=self.MAX_RETRIES,
            initial_interval=self.RETRY_INTERVAL,
            max_interval=self.MAX_RETRY_INTERVAL,
            multiplier=self.BACKOFF_MULTIPLIER,
            jitter=self.RETRY_JITTER,
            strategy=BackoffStrategy.EXPONENTIAL if self.USE_BACKOFF else BackoffStrategy.CONSTANT,
        )

    def with_defaults(self) -> "TushareConfig":
        """Return a copy where unset or invalid values fall back to the defaults.

        Zero retries is a valid setting (no retry); only negative counts are replaced.
        """
        return replace(
            self,
            BASE_URL=self.BASE_URL or DEFAULT_BASE_URL,
            PAGE_LIMIT=self.PAGE_LIMIT if self.PAGE_LIMIT > 0 else DEFAULT_PAGE_LIMIT,
            MAX_RETRIES=self.MAX_RETRIES if self.MAX_RETRIES >= 0 else DEFAULT_MAX_RETRIES,
            RETRY_INTERVAL=self.RETRY_INTERVAL if self.RETRY_INTERVAL > 0 else DEFAULT_RETRY_INTERVAL,
            MAX_RETRY_INTERVAL=(
                self.MAX_RETRY_INTERVAL if self.MAX_RETRY_INTERVAL > 0 else DEFAULT_MAX_RETRY_INTERVAL
            ),
            REQUEST_TIMEOUT=self.REQUEST_TIMEOUT if self.REQUEST_TIMEOUT > 0 else DEFAULT_REQUEST_TIMEOUT,
        )

    @classmethod
    def from_retry_policy(cls, token: str, policy: RetryPolicy) -> "TushareConfig":
        """Build a configuration with default endpoint settings and the given retry policy"""
        return cls(
            TOKEN=token,
            MAX_RETRIES=policy.max_retries,
            RETRY_INTERVAL=policy.initial_interval,
            MAX_RETRY_INTERVAL=policy.max_interval,
            BACKOFF_MULTIPLIER=policy.multiplier,
            RETRY_JITTER=policy.jitter,
            USE_BACKOFF=policy.strategy == BackoffStrategy.EXPONENTIAL,
        )

    @classmethod
    def from_env(cls) -> "TushareConfig":
        """Create configuration from environment variables"""
        return cls(
            TOKEN=os.getenv("TUSHARE_TOKEN", cls.TOKEN),
            BASE_URL=os.getenv("TUSHARE_BASE_URL", cls.BASE_URL),
            REQUEST_TIMEOUT=float(os.getenv("TUSHARE_REQUEST_TIMEOUT", str(cls.REQUEST_TIMEOUT))),
            PAGE_LIMIT=int(os.getenv("TUSHARE_PAGE_LIMIT", str(cls.PAGE_LIMIT))),
            MAX_RETRIES=int(os.getenv("TUSHARE_MAX_RETRIES", str(cls.MAX_RETRIES))),
            RETRY_INTERVAL=float(os.getenv("TUSHARE_RETRY_INTERVAL", str(cls.RETRY_INTERVAL))),
            MAX_RETRY_INTERVAL=float(os.getenv("TUSHARE_MAX_RETRY_INTERVAL", str(cls.MAX_RETRY_INTERVAL))),
            USE_BACKOFF=_env_bool("TUSHARE_USE_BACKOFF", cls.USE_BACKOFF),
        ).with_defaults()


# Global configuration instance
config = TushareConfig.from_env()
