from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ExchangeRecord(BaseModel):
    """One question and, once answered, its reply.

    Built from snake_case table rows; dumps to the camelCase view shape
    (``isFromStuart``, ``questionLength``) with ``by_alias=True``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ''
    question: str = ''
    reply: Optional[str] = None
    timestamp: Optional[datetime] = None
    is_from_stuart: bool = False
    read: bool = False
    question_length: Optional[int] = None
    reply_timestamp: Optional[datetime] = None
    reply_sid: Optional[str] = None
    standalone: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ExchangeRecord':
        return cls.model_validate({**row, 'id': str(row['id'])})

    @property
    def timestamp_ms(self) -> int:
        # Rows seen before the database default lands have no timestamp yet
        moment = self.timestamp or datetime.now(timezone.utc)
        return int(moment.timestamp() * 1000)

    @property
    def is_pending(self) -> bool:
        return not self.read and not self.is_from_stuart

    def to_view(self) -> Dict[str, Any]:
        view = self.model_dump(by_alias=True, exclude_none=True, mode='json')
        view['timestamp'] = self.timestamp_ms
        return view
