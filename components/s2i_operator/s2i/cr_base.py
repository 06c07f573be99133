"""Base model of the s2i custom resources."""

from pydantic import BaseModel, ConfigDict


class BaseCRD(BaseModel):
    """Keeps fields this operator does not model so they survive a round trip."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
