"""
Schema-driven decoding of positional rows into pydantic models
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.data_collector.tushare_data.errors import DecodeError
from src.utils.core.logger import get_logger

logger = get_logger(__name__, utility="data_collector")

M = TypeVar("M", bound=BaseModel)


class RecordDecoder(Generic[M]):
    """
    Decode rows into instances of a pydantic model.

    Remote field names are matched to model members through ``field_map``
    (remote name -> member name) or, by default, the member's alias or name.
    Validation runs in strict mode so values are never silently coerced; rows
    wider than the field list, missing required members and type mismatches
    raise DecodeError.

    Example:
        class Daily(BaseModel):
            ts_code: str
            close: float

        RecordDecoder(Daily).decode(["ts_code", "close"], [["000001.SZ", 10.5]])
    """

    def __init__(self, model: Type[M], field_map: Optional[Dict[str, str]] = None) -> None:
        self.model = model
        members = model.model_fields

        # member name -> key expected by model_validate
        self._input_keys: Dict[str, str] = {name: info.alias or name for name, info in members.items()}

        if field_map is None:
            self._remote_to_key = {key: key for key in self._input_keys.values()}
        else:
            unknown = sorted(set(field_map.values()) - set(members))
            if unknown:
                raise DecodeError(f"field_map targets undeclared members of {model.__name__}: {unknown}")
            self._remote_to_key = {remote: self._input_keys[member] for remote, member in field_map.items()}

    def _column_plan(self, fields: Sequence[str]) -> List[tuple]:
        plan = []
        for index, remote in enumerate(fields):
            key = self._remote_to_key.get(remote)
            if key is not None:
                plan.append((index, key))
        return plan

    def decode_row(self, fields: Sequence[str], row: Sequence[Any], index: Optional[int] = None) -> M:
        return self._decode(self._column_plan(fields), len(fields), row, index)

    def _decode(self, plan: List[tuple], width: int, row: Sequence[Any], index: Optional[int]) -> M:
        if len(row) > width:
            raise DecodeError(f"row has {len(row)} values but only {width} fields", row=index)

        data: Dict[str, Any] = {key: row[col] for col, key in plan if col < len(row)}
        try:
            return self.model.model_validate(data, strict=True)
        except ValidationError as e:
            raise DecodeError(f"cannot decode into {self.model.__name__}: {e}", row=index) from e

    def decode(self, fields: Sequence[str], items: Sequence[Sequence[Any]]) -> List[M]:
        """Decode all rows, failing on the first row that does not fit the model"""
        plan = self._column_plan(fields)
        width = len(fields)
        results = [self._decode(plan, width, row, i) for i, row in enumerate(items)]
        logger.debug(f"Decoded {len(results)} rows into {self.model.__name__}")
        return results

    def decode_records(self, records: Sequence[Dict[str, Any]]) -> List[M]:
        """Decode already-named records (e.g. from ``to_records``)"""
        results = []
        for i, record in enumerate(records):
            data = {self._remote_to_key[k]: v for k, v in record.items() if k in self._remote_to_key}
            try:
                results.append(self.model.model_validate(data, strict=True))
            except ValidationError as e:
                raise DecodeError(f"cannot decode into {self.model.__name__}: {e}", row=i) from e
        return results
