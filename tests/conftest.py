"""
Shared fixtures and models for the StarSocket test suite.
"""

from typing import List, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from starsocket import DispatcherConfig, PydanticCoercionService
from starsocket.transport import InMemoryServer, InMemorySocket


class CreateMessage(BaseModel):
    """Inbound message body with constraints on every field"""
    text: str = Field(min_length=1)
    author: str = Field(min_length=2)
    priority: int = Field(default=0, ge=0, le=10)


class CamelMessage(BaseModel):
    """Message whose wire names are camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel)

    user_name: str = Field(min_length=1)
    reply_to: Optional[int] = None


class TaggedMessage(BaseModel):
    """Message whose tags arrive as one comma separated string"""
    tags: List[str]

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return value.split(",")


class Thread(BaseModel):
    title: str
    messages: List[CreateMessage]


class Message(BaseModel):
    id: int
    text: str
    author: str
    priority: int = 0


class NotFound(Exception):
    def __init__(self, item_id: int):
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


@pytest.fixture
def coercion():
    return PydanticCoercionService()


@pytest.fixture
def config():
    return DispatcherConfig(validate=True)


@pytest.fixture
def server():
    return InMemoryServer()


@pytest.fixture
def socket(server):
    """A socket that is not attached to any controller"""
    return InMemorySocket(server, query={"token": "abc", "page": "2"}, request={"path": "/socket.io/"}, sid="sock-1")
