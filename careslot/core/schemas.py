from typing import Annotated
from pydantic import BaseModel, ConfigDict, BeforeValidator, PlainSerializer
from pydantic.alias_generators import to_camel
from careslot.core.clock import parse_hhmm, format_hhmm

def _to_minute(v):
    if isinstance(v, str):
        return parse_hhmm(v)
    return v

# "HH:MM" on the wire, minutes past midnight in Python
WallTime = Annotated[int, BeforeValidator(_to_minute), PlainSerializer(format_hhmm, return_type=str)]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
