"""
Request and response models for the Tushare Pro wire format
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

import pandas as pd
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from src.data_collector.config import CODE_OK
from src.data_collector.tushare_data.decoder import RecordDecoder
from src.data_collector.tushare_data.errors import SerializationError
from src.data_collector.tushare_data.tabular import TabularView

M = TypeVar("M", bound=BaseModel)

Scalar = Union[str, int, float, bool, None]


class ScalarKind(str, Enum):
    """Kinds of values allowed in a request parameter mapping"""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


def classify_scalar(value: Any) -> ScalarKind:
    """
    Classify a parameter value, rejecting anything that is not a plain scalar.

    bool is checked before int because it is an int subclass. NaN and
    infinities are rejected since they have no JSON encoding.

    Raises:
        SerializationError: for nested structures and non-finite numbers
    """
    if value is None:
        return ScalarKind.NULL
    if isinstance(value, bool):
        return ScalarKind.BOOLEAN
    if isinstance(value, str):
        return ScalarKind.STRING
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise SerializationError(f"non-finite number is not serializable: {value!r}")
        return ScalarKind.NUMBER
    raise SerializationError(
        f"parameter values must be str, number, bool or None, got {type(value).__name__}"
    )


def join_fields(fields: Union[str, Sequence[str], None]) -> str:
    """Normalize a field selection to the comma-joined wire form"""
    if fields is None:
        return ""
    if isinstance(fields, str):
        return fields
    return ",".join(fields)


class RequestParams(BaseModel):
    """One request as sent on the wire"""

    model_config = ConfigDict(frozen=True)

    api_name: str = Field(..., min_length=1)
    token: str
    params: Dict[str, Any] = Field(default_factory=dict)
    fields: str = ""

    @field_validator("params")
    @classmethod
    def validate_params(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        for name, value in v.items():
            try:
                classify_scalar(value)
            except SerializationError as e:
                raise ValueError(f"parameter {name!r}: {e.message}") from None
        return dict(v)

    @classmethod
    def build(
        cls,
        api_name: str,
        token: str,
        params: Optional[Dict[str, Any]] = None,
        fields: Union[str, Sequence[str], None] = None,
    ) -> "RequestParams":
        """Construct a request, reporting invalid parameters as SerializationError"""
        try:
            return cls(api_name=api_name, token=token, params=dict(params or {}), fields=join_fields(fields))
        except ValidationError as e:
            raise SerializationError(f"invalid request for {api_name!r}: {e}") from e

    def with_page(self, offset: int, limit: int) -> "RequestParams":
        """Copy of this request with the pagination cursor set"""
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        return self.model_copy(update={"params": {**self.params, "offset": offset, "limit": limit}})

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"api_name": self.api_name, "token": self.token}
        if self.params:
            payload["params"] = dict(self.params)
        if self.fields:
            payload["fields"] = self.fields
        return payload

    def __repr__(self) -> str:
        return f"RequestParams(api_name={self.api_name!r}, params={self.params!r}, fields={self.fields!r})"


class ResponseData(BaseModel):
    """Page payload: column names, positional rows and the more-pages flag"""

    fields: List[str] = Field(default_factory=list)
    items: List[List[Any]] = Field(default_factory=list)
    has_more: StrictBool = False

    @field_validator("fields", "items", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def _rows_within_fields(self) -> "ResponseData":
        width = len(self.fields)
        for index, row in enumerate(self.items):
            if len(row) > width:
                raise ValueError(f"row {index} has {len(row)} values but only {width} fields")
        return self


class TushareResponse(BaseModel):
    """Response envelope: status code, message and optional page data"""

    code: StrictInt
    msg: str = ""
    data: Optional[ResponseData] = None

    @field_validator("msg", mode="before")
    @classmethod
    def _null_msg(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def parse(cls, payload: Any) -> "TushareResponse":
        """Validate a decoded JSON body, reporting failures as SerializationError"""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise SerializationError(
                f"malformed response payload: {e}",
                payload if isinstance(payload, dict) else None,
            ) from e

    @classmethod
    def merged(cls, fields: List[str], items: List[List[Any]]) -> "TushareResponse":
        """Synthetic success envelope for a fully paginated result"""
        return cls(code=CODE_OK, msg="", data=ResponseData(fields=fields, items=items, has_more=False))

    def is_success(self) -> bool:
        return self.code == CODE_OK

    @property
    def fields(self) -> List[str]:
        return list(self.data.fields) if self.data else []

    @property
    def items(self) -> List[List[Any]]:
        return self.data.items if self.data else []

    def to_records(self) -> List[Dict[str, Any]]:
        """Rows as field-name -> value dicts; short rows omit their trailing fields"""
        if self.data is None:
            return []
        fields = self.data.fields
        return [dict(zip(fields, row)) for row in self.data.items]

    def to_models(self, model: Type[M], field_map: Optional[Dict[str, str]] = None) -> List[M]:
        """Decode every row into ``model``; see RecordDecoder"""
        return RecordDecoder(model, field_map).decode(self.fields, self.items)

    def to_view(self) -> TabularView:
        return TabularView(self.fields, self.to_records())

    def to_frame(self) -> pd.DataFrame:
        return self.to_view().to_pandas()
