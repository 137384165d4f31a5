"""
Platform record consumed by the provider layer.
"""

from typing import Tuple

from pydantic import BaseModel, Field


class PlatformConfig(BaseModel):
    """
    One upstream platform as described in the platforms file.

    Validation of field presence and format happens in the config loader;
    the provider layer treats an instance as a well-formed, read-only record.
    """
    id: str
    name: str
    type: str
    base_url: str
    api_key: str = Field(..., repr=False)
    models: Tuple[str, ...] = ()

    class Config:
        frozen = True

    def supports_model(self, model: str) -> bool:
        """Check whether the platform lists a model."""
        return model in self.models
