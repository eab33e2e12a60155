from pydantic import BaseModel, Field


class TopicSummary(BaseModel):
    name: str
    messageCount: int = Field(default=0, ge=0)
