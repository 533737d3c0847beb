"""Base model configuration for parsed entries and options."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model shared by entry snapshots and inspection options."""

    model_config = ConfigDict(frozen=True)
