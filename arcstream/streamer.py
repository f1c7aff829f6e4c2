"""Wires producers' outputs through stream buffers to consumers' controllers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from arcstream.buffers import DefaultStreamBuffer, StaticStreamBuffer
from arcstream.controllers import ShortCircuitActor, StreamController


@dataclass
class DefaultProducer:
    """A named producer; a buffer length of 0 makes that output a state."""

    name: str
    outputs: list[str] = field(default_factory=list)
    buffer_lengths: list[int] = field(default_factory=list)


@dataclass
class DefaultConsumer:
    """A named consumer reading ``inputs`` through ``controller``.

    An input starting with ``#`` is fed directly by another consumer's actor
    instead of by the streamer.
    """

    name: str
    inputs: list[str]
    controller: StreamController


class StatefulStreamer:
    """Routes named streams from producers to consumers."""

    def __init__(self) -> None:
        self.producers: list[DefaultProducer] = []
        self.consumers: list[DefaultConsumer] = []
        self.buffers: dict[str, DefaultStreamBuffer | StaticStreamBuffer] = {}
        self._threads: list[threading.Thread] = []

    def register_producer(self, producer: DefaultProducer) -> None:
        self.producers.append(producer)

    def register_consumer(self, consumer: DefaultConsumer) -> None:
        self.consumers.append(consumer)

    def send(self, name: str, data: Any) -> None:
        """Put ``data`` on the stream called ``name``."""
        try:
            buffer = self.buffers[name]
        except KeyError:
            raise KeyError(f"no stream named {name!r}") from None
        buffer.add(data)

    def _start(self, target: Any, name: str) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def serve(self) -> None:
        """Create the buffers, connect the consumers and start everything."""
        for producer in self.producers:
            for output, length in zip(producer.outputs, producer.buffer_lengths, strict=True):
                if length != 0:
                    self.buffers[output] = DefaultStreamBuffer(output, length)
                else:
                    self.buffers[output] = StaticStreamBuffer(output)

        for consumer in self.consumers:
            controller = consumer.controller
            for name in consumer.inputs:
                if name.startswith("#"):
                    controller.get_listener(name)
                    continue
                try:
                    buffer = self.buffers[name]
                except KeyError:
                    raise KeyError(f"no stream named {name!r}") from None
                buffer.register_listener(controller.get_listener(name))
            self._start(controller.serve, f"controller-{consumer.name}")

        for name, buffer in self.buffers.items():
            self._start(buffer.serve, f"buffer-{name}")

    def generate_dot(self) -> str:
        """Describe the stream graph in the dot language."""
        lines = ["digraph g {\n", "\tStreamer [shape=record]\n"]
        for producer in self.producers:
            for output in producer.outputs:
                lines.append(
                    f'\t{producer.name} -> Streamer [label="{output}", shape=record]\n'
                )
                lines.append(f"\t{producer.name} [shape=record]\n")

        intermediate: set[str] = set()
        for consumer in self.consumers:
            for name in consumer.inputs:
                if name.startswith("#"):
                    intermediate.add(name[1:])
                    continue
                lines.append(f'\tStreamer -> {consumer.name} [label="{name}"]\n')
            actor = consumer.controller.actor
            if isinstance(actor, ShortCircuitActor):
                lines.append(
                    f'\t{consumer.name} -> {actor.consumer.name} [label="{actor.name}"]\n'
                )
            else:
                lines.append(
                    f"\t{consumer.name} -> {type(actor).__name__} [shape=circle]\n"
                )

        rank = "\t{ rank=same "
        for consumer in self.consumers:
            label = consumer.controller.generate_dot_label()
            entry = f"\t{consumer.name} [label=<<b>{consumer.name}</b><br/>{label}>,"
            if consumer.name in intermediate:
                entry += " shape=record style=rounded color=grey bgcolor=grey"
            else:
                entry += " shape=record"
                rank += consumer.name + " "
            lines.append(entry + "]\n")
        lines.append(rank + "}\n")
        lines.append("}")
        return "".join(lines)