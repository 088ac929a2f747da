from typing import Optional

from pydantic import BaseModel, ConfigDict


class WebhookRequest(BaseModel):
    """Raw body and the headers of one inbound delivery."""
    model_config = ConfigDict(frozen=True)

    body: bytes
    signature: Optional[str] = None
    event: Optional[str] = None
    user_agent: Optional[str] = None
    content_type: str = "application/json"
