# File: common/schemas/request_base.py

from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from common.translations.messages import Language


class BaseRequestModel(BaseModel):
    """Shared fields of JSON request bodies. Unknown fields are rejected so clients cannot smuggle in counters or ids."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    response_language: Language = Field(default="en", description="Language of response messages ('en' or 'fa')")
    request_id: Optional[str] = Field(default=None, max_length=64, description="Client correlation id echoed in logs")
