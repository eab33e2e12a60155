from pydantic import BaseModel, Field


class MessageCounts(BaseModel):
    success: int = Field(default=0, ge=0)
    error: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return self.success + self.error


class MetricsView(BaseModel):
    """Display-ready gateway metrics; every field is always populated."""

    messagesProcessed: MessageCounts = Field(default_factory=MessageCounts)
    kafkaErrors: int = Field(default=0, ge=0)
    authAttempts: MessageCounts = Field(default_factory=MessageCounts)
    requestDurationMs: str = "0.00"

    model_config = {"frozen": True}
