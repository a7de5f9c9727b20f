"""Base model configuration for all declarative data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Declarations are immutable; variable substitution produces copies.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)
