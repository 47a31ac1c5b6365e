"""
Tushare Pro API client with retry, backoff, cancellation and pagination
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

import pandas as pd
import requests
from pydantic import BaseModel

from src.data_collector.config import TushareConfig, config as default_config
from src.data_collector.tushare_data.errors import (
    SerializationError,
    TransportError,
    TushareAPIError,
    business_error_for,
)
from src.data_collector.tushare_data.models import RequestParams, TushareResponse
from src.data_collector.tushare_data.tabular import TabularView
from src.utils.core.cancellation import QueryCancelledError, QueryContext
from src.utils.core.logger import get_logger
from src.utils.core.retry import RetryExecutor, RetryExhaustedError, RetryPolicy

logger = get_logger(__name__, utility="data_collector")

M = TypeVar("M", bound=BaseModel)

Fields = Union[str, Sequence[str], None]


class TushareDataClient:
    """Main client for interacting with the Tushare Pro API

    One client may be shared by concurrent queries: the session, token,
    configuration and retry policy are only read after construction, and all
    per-query state lives on the stack of the call.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        config: Optional[TushareConfig] = None,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        """
        Initialize the Tushare client

        Args:
            token: API token (defaults to config.TOKEN)
            config: Client configuration (defaults to the environment-derived config)
            session: Optional pre-configured requests session
            retry_policy: Optional policy overriding the one derived from config
        """
        conf = config or default_config
        if token is not None:
            conf = replace(conf, TOKEN=token)
        self.config: TushareConfig = conf.with_defaults()
        self.token: str = self.config.TOKEN
        self.base_url: str = self.config.BASE_URL
        self.page_limit: int = self.config.PAGE_LIMIT
        self.retry_policy: RetryPolicy = retry_policy or self.config.retry_policy
        self.executor = RetryExecutor(self.retry_policy, notify=self._notify_retry)

        self.session: requests.Session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": "tushare-collector/1.0", "Content-Type": "application/json"}
        )

        if not self.token:
            logger.warning("Tushare client created without a token; requests will be rejected")

        logger.debug(
            f"Tushare client initialized (url={self.base_url}, page_limit={self.page_limit}, "
            f"max_retries={self.retry_policy.max_retries}, strategy={self.retry_policy.strategy.value})"
        )

    @staticmethod
    def _notify_retry(error: Exception, delay: float) -> None:
        logger.warning(f"{error} - retrying in {delay:.2f}s")

    def _make_single_request(self, request: RequestParams, ctx: QueryContext) -> TushareResponse:
        """
        Perform exactly one POST exchange without retry logic

        Args:
            request: Request to send
            ctx: Cancellation context bounding the exchange

        Returns:
            Parsed response envelope (any code)

        Raises:
            TransportError: connection failure, timeout or non-200 status
            SerializationError: body is not a valid response envelope
            QueryCancelledError: context cancelled before or during the exchange
        """
        ctx.raise_if_cancelled()

        timeout = self.config.REQUEST_TIMEOUT
        remaining = ctx.remaining()
        if remaining is not None:
            # The deadline may pass after the check above; a zero timeout is rejected by urllib3.
            if remaining <= 0:
                raise ctx.error()
            timeout = min(timeout, remaining)

        logger.debug(f"POST {request.api_name} params={request.params}")

        try:
            response = self.session.post(self.base_url, json=request.to_payload(), timeout=timeout)
        except requests.Timeout as e:
            if ctx.is_cancelled():
                raise ctx.error() from e
            raise TransportError(f"http request timed out: {e}") from e
        except requests.RequestException as e:
            if ctx.is_cancelled():
                raise ctx.error() from e
            raise TransportError(f"http request failed: {e}") from e

        if ctx.is_cancelled():
            raise ctx.error()

        if response.status_code != 200:
            body = response.text
            raise TransportError(
                f"http error: status={response.status_code}, body={body[:500]}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            logger.error(f"Error parsing JSON response for {request.api_name}: {e}")
            raise SerializationError(f"unmarshal response failed: {e}") from e

        return TushareResponse.parse(payload)

    def _fetch_page(self, request: RequestParams, ctx: QueryContext) -> TushareResponse:
        """Fetch one page through the retry executor; only code 0 is returned"""

        def _attempt() -> TushareResponse:
            response = self._make_single_request(request, ctx)
            if not response.is_success():
                raise business_error_for(response.code, response.msg)
            return response

        return self.executor.execute(_attempt, ctx)

    def _fetch_paginated_data(self, request: RequestParams, ctx: QueryContext) -> TushareResponse:
        """
        Fetch every page of a query and merge them

        Pages are requested strictly in sequence at offset = page_index * page_limit
        until a page reports has_more=False or carries no data. Any failure aborts
        the whole query: rows from earlier pages are dropped and the error is
        re-raised unchanged.
        """
        fields: Optional[List[str]] = None
        rows: List[List[Any]] = []
        page_index = 0

        while True:
            ctx.raise_if_cancelled()
            offset = page_index * self.page_limit

            try:
                page = self._fetch_page(request.with_page(offset, self.page_limit), ctx)
            except (TushareAPIError, RetryExhaustedError, QueryCancelledError) as e:
                logger.error(f"{request.api_name}: page {page_index + 1} (offset={offset}) failed: {e}")
                raise

            data = page.data
            if data is None:
                logger.debug(f"{request.api_name}: page {page_index + 1} returned no data")
                break

            # Later pages are trusted to carry the same columns.
            if fields is None:
                fields = list(data.fields)
            rows.extend(data.items)

            logger.debug(
                f"{request.api_name}: page {page_index + 1} fetched {len(data.items)} rows. Total: {len(rows)}"
            )
            if not data.has_more:
                break
            page_index += 1

        logger.info(f"{request.api_name}: pagination complete. Pages: {page_index + 1}, rows: {len(rows)}")
        return TushareResponse.merged(fields or [], rows)

    def _build_request(self, api_name: str, params: Optional[Dict[str, Any]], fields: Fields) -> RequestParams:
        return RequestParams.build(api_name, self.token, params, fields)

    def query(
        self,
        api_name: str,
        params: Optional[Dict[str, Any]] = None,
        fields: Fields = None,
        ctx: Optional[QueryContext] = None,
    ) -> TushareResponse:
        """
        Run a query and return every page merged into one response

        Args:
            api_name: Remote endpoint name, e.g. "daily"
            params: Scalar parameters (offset/limit are managed here)
            fields: Comma-joined string or sequence of field names
            ctx: Cancellation/deadline context

        Returns:
            Success envelope with all rows and has_more=False
        """
        request = self._build_request(api_name, params, fields)
        return self._fetch_paginated_data(request, ctx or QueryContext.background())

    def query_one(
        self,
        api_name: str,
        params: Optional[Dict[str, Any]] = None,
        fields: Fields = None,
        ctx: Optional[QueryContext] = None,
    ) -> TushareResponse:
        """Run a single request without pagination, for small result sets"""
        request = self._build_request(api_name, params, fields)
        return self._fetch_page(request, ctx or QueryContext.background())

    def query_as_view(
        self,
        api_name: str,
        params: Optional[Dict[str, Any]] = None,
        fields: Fields = None,
        ctx: Optional[QueryContext] = None,
    ) -> TabularView:
        return self.query(api_name, params, fields, ctx).to_view()

    def query_as_frame(
        self,
        api_name: str,
        params: Optional[Dict[str, Any]] = None,
        fields: Fields = None,
        ctx: Optional[QueryContext] = None,
    ) -> pd.DataFrame:
        return self.query(api_name, params, fields, ctx).to_frame()

    def query_models(
        self,
        api_name: str,
        model: Type[M],
        params: Optional[Dict[str, Any]] = None,
        fields: Fields = None,
        ctx: Optional[QueryContext] = None,
        field_map: Optional[Dict[str, str]] = None,
    ) -> List[M]:
        """Run a paginated query and decode the rows into ``model`` instances"""
        return self.query(api_name, params, fields, ctx).to_models(model, field_map)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "TushareDataClient":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit - cleanup session"""
        self.close()
