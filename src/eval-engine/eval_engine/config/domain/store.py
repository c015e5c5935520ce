"""Configuration store location model."""

from pathlib import Path

from pydantic import BaseModel


class StoreConfig(BaseModel, frozen=True):
    path: Path
