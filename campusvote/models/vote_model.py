from pydantic import BaseModel, ConfigDict, Field


class Vote(BaseModel):
    model_config = ConfigDict(extra="forbid")

    poll_id: str
    candidate: str = Field(..., min_length=1)
