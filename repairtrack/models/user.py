from typing import Optional
from sqlmodel import Field
from .base import Timestamped


class User(Timestamped, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True, index=True)
    # opaque subject handed to us by the identity provider
    external_id: str = Field(unique=True, index=True)
    email: str = ""
    name: Optional[str] = None
