"""
Message App - Minimal StarSocket Application

Demonstrates:
- A controller declared through the registry
- Typed, validated message bodies
- Success, validation failure and parse failure emissions
- Acknowledgments for actions without an emission policy

Runs on the in-memory transport, so no network is needed.
"""

import asyncio
import json
import logging

from pydantic import BaseModel, Field

from starsocket import (
    ApplicationConfig, ControllerRegistry, Environment, InMemoryServer,
    ValidationFailure, configure_server,
)
from starsocket.core.params import connected_socket, message_body

logger = logging.getLogger("starsocket.examples.message_app")


class CreateMessage(BaseModel):
    text: str = Field(min_length=1, max_length=280)
    author: str = Field(min_length=2)


class Message(CreateMessage):
    id: int


class MessageController:

    def __init__(self):
        self.messages = []

    def connection(self, socket):
        logger.info(f"Client connected: {socket.id}")

    def disconnect(self, socket):
        logger.info(f"Client disconnected: {socket.id}")

    async def save(self, socket, message: CreateMessage):
        saved = Message(id=len(self.messages) + 1, **message.model_dump())
        self.messages.append(saved)
        return saved

    def count(self):
        return len(self.messages)


def build_registry(controller: MessageController) -> ControllerRegistry:
    registry = ControllerRegistry()
    messages = registry.controller(name="MessageController")

    messages.on_connect(controller.connection).params(connected_socket(0))
    messages.on_disconnect(controller.disconnect).params(connected_socket(0))

    (messages.on_message("save", controller.save)
        .params(connected_socket(0), message_body(1, CreateMessage))
        .emit_on_success("save/success")
        .emit_on_fail("save/error")
        .emit_on_fail_for("save/validation_error", ValidationFailure))

    messages.on_message("count", controller.count)
    return registry


async def main():
    io = InMemoryServer()
    config = ApplicationConfig.for_environment(Environment.DEVELOPMENT)
    dispatcher = configure_server(io, build_registry(MessageController()), config, setup_logging=True)

    socket = await io.connect()
    await socket.receive("save", json.dumps({"text": "Hello", "author": "ana"}))
    await socket.receive("save", json.dumps({"text": "", "author": "a"}))
    await socket.receive("save", "{not json")
    await socket.receive("count", None, lambda total: logger.info(f"Ack: {total} messages"))
    await socket.disconnect()
    await dispatcher.wait_pending()

    for event, args in socket.emitted:
        print(f"{event}: {args}")


if __name__ == "__main__":
    asyncio.run(main())
