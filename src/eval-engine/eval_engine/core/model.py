"""Shared Pydantic base for documents persisted in the configuration store."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoreDocument(BaseModel):
    """Base model whose wire names are camelCase while attributes stay snake_case.

    Serialize with ``model_dump(by_alias=True, mode="json")`` when writing to the
    store; both spellings are accepted when validating.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
