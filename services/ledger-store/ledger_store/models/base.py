"""
Ledger Store — Shared pydantic base

Persisted records keep the camelCase field names of the browser snapshot
(``expiryDate``, ``createdAt``, ``pickupTime`` ...), while Python code uses
snake_case attributes.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
