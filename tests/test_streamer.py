import queue
import threading
from collections import Counter as Tally

import pytest

from arcstream.controllers import (
    Aggregated,
    Conjunctions,
    CustomizableController,
    Disjunctions,
    ShortCircuitActor,
)
from arcstream.streamer import DefaultConsumer, DefaultProducer, StatefulStreamer


class MockState:
    def __init__(self, v):
        self.v = v

    def equals(self, other):
        return self.v == other.v


class MockActor:
    def __init__(self):
        self.received = queue.Queue()

    def consume(self, data):
        self.received.put(data)

    def take(self, n):
        return [self.received.get(timeout=5) for _ in range(n)]


def values(states):
    return [s.v for s in states]


def build(producers, consumers):
    ss = StatefulStreamer()
    for p in producers:
        ss.register_producer(p)
    for c in consumers:
        ss.register_consumer(c)
    return ss


def test_state_aggregator():
    actor = MockActor()
    ss = build(
        [DefaultProducer("A", ["State1"], [0]), DefaultProducer("B", ["State2"], [0])],
        [DefaultConsumer("C", ["State1", "State2"], Conjunctions(actor))],
    )
    ss.serve()

    ss.send("State1", MockState("1"))
    ss.send("State2", MockState("2"))
    assert values(actor.take(1)[0]) == ["1", "2"]

    ss.send("State1", MockState("1"))
    ss.send("State1", MockState("2"))
    ss.send("State2", MockState("1"))
    assert values(actor.take(1)[0]) == ["2", "1"]


def test_stream_aggregator():
    actor = MockActor()
    ss = build(
        [DefaultProducer("A", ["Stream1"], [1]), DefaultProducer("B", ["Stream2"], [1])],
        [DefaultConsumer("C", ["Stream1", "Stream2"], Conjunctions(actor))],
    )
    ss.serve()

    ss.send("Stream1", MockState("1"))
    ss.send("Stream2", MockState("2"))
    assert values(actor.take(1)[0]) == ["1", "2"]

    ss.send("Stream1", MockState("1"))
    ss.send("Stream2", MockState("2"))
    assert values(actor.take(1)[0]) == ["1", "2"]


def test_disjunctions():
    actor = MockActor()
    ss = build(
        [DefaultProducer("A", ["Stream1"], [1]), DefaultProducer("A", ["Stream2"], [1])],
        [DefaultConsumer("C", ["Stream1", "Stream2"], Disjunctions(actor, 3))],
    )
    ss.serve()

    ss.send("Stream1", MockState("1"))
    ss.send("Stream2", MockState("2"))
    first = actor.take(2)
    assert {(a.name, a.data.v) for a in first} == {("Stream1", "1"), ("Stream2", "2")}

    for name, v in [("Stream1", "1"), ("Stream1", "1"), ("Stream2", "2"),
                    ("Stream1", "1"), ("Stream1", "1")]:
        ss.send(name, MockState(v))
    second = actor.take(5)
    assert all(isinstance(a, Aggregated) for a in second)
    assert Tally(a.name for a in second) == Tally({"Stream1": 4, "Stream2": 1})


def test_customizable_controller():
    actor = MockActor()

    def same(inputs):
        return (
            inputs[0] is not None
            and inputs[1] is not None
            and inputs[0].equals(inputs[1])
        )

    ss = build(
        [DefaultProducer("A", ["Stream1"], [5]), DefaultProducer("B", ["Stream2"], [5])],
        [DefaultConsumer("C", ["Stream1", "Stream2"], CustomizableController(actor, same))],
    )
    ss.serve()

    ss.send("Stream1", MockState("1"))
    ss.send("Stream2", MockState("1"))
    assert values(actor.take(1)[0]) == ["1", "1"]

    ss.send("Stream1", MockState("2"))
    ss.send("Stream2", MockState("2"))
    ss.send("Stream2", MockState("2"))
    ss.send("Stream2", MockState("2"))
    assert [values(v) for v in actor.take(3)] == [["2", "2"]] * 3

    ss.send("Stream1", MockState("3"))
    ss.send("Stream2", MockState("1"))
    ss.send("Stream2", MockState("3"))
    assert values(actor.take(1)[0]) == ["3", "3"]
    with pytest.raises(queue.Empty):
        actor.received.get(timeout=0.3)


def _dot_graph():
    actor2 = MockActor()
    c2 = DefaultConsumer("E", ["#D", "Stream3"], Disjunctions(actor2, 3))
    actor1 = ShortCircuitActor(c2, "#D")
    c1 = DefaultConsumer("D", ["Stream1", "Stream2"], Conjunctions(actor1))
    actor3 = MockActor()
    c3 = DefaultConsumer("H", ["Stream2", "Stream3"], Disjunctions(actor3, 3))
    return build(
        [
            DefaultProducer("A", ["Stream1"], [1]),
            DefaultProducer("B", ["Stream2"], [1]),
            DefaultProducer("C", ["Stream3"], [1]),
        ],
        [c1, c2, c3],
    )


def test_generate_dot():
    ss = _dot_graph()
    ss.serve()
    expected = (
        "digraph g {\n"
        "\tStreamer [shape=record]\n"
        '\tA -> Streamer [label="Stream1", shape=record]\n'
        "\tA [shape=record]\n"
        '\tB -> Streamer [label="Stream2", shape=record]\n'
        "\tB [shape=record]\n"
        '\tC -> Streamer [label="Stream3", shape=record]\n'
        "\tC [shape=record]\n"
        '\tStreamer -> D [label="Stream1"]\n'
        '\tStreamer -> D [label="Stream2"]\n'
        '\tD -> E [label="#D"]\n'
        '\tStreamer -> E [label="Stream3"]\n'
        "\tE -> MockActor [shape=circle]\n"
        '\tStreamer -> H [label="Stream2"]\n'
        '\tStreamer -> H [label="Stream3"]\n'
        "\tH -> MockActor [shape=circle]\n"
        "\tD [label=<<b>D</b><br/>Stream1 AND Stream2>,"
        " shape=record style=rounded color=grey bgcolor=grey]\n"
        "\tE [label=<<b>E</b><br/>#D OR Stream3>, shape=record]\n"
        "\tH [label=<<b>H</b><br/>Stream2 OR Stream3>, shape=record]\n"
        "\t{ rank=same E H }\n"
        "}"
    )
    assert ss.generate_dot() == expected


def test_generate_dot_before_serve_has_no_inputs():
    ss = _dot_graph()
    with pytest.raises(ValueError):
        ss.generate_dot()


def test_compound_controller():
    actor2 = MockActor()
    c2 = DefaultConsumer("E", ["#D", "Stream3"], Disjunctions(actor2, 3))
    actor1 = ShortCircuitActor(c2, "#D")
    c1 = DefaultConsumer("D", ["Stream1", "Stream2"], Conjunctions(actor1))
    ss = build(
        [
            DefaultProducer("A", ["Stream1"], [1]),
            DefaultProducer("B", ["Stream2"], [1]),
            DefaultProducer("C", ["Stream3"], [1]),
        ],
        [c1, c2],
    )
    ss.serve()
    threading.Thread(target=actor1.serve, daemon=True).start()

    ss.send("Stream1", MockState("1"))
    ss.send("Stream2", MockState("2"))
    ss.send("Stream3", MockState("3"))

    got = {a.name: a.data for a in actor2.take(2)}
    assert got["Stream3"].v == "3"
    inner = got["#D"]
    assert inner.name == "#D"
    assert values(inner.data) == ["1", "2"]


def test_send_to_unknown_stream():
    ss = StatefulStreamer()
    ss.serve()
    with pytest.raises(KeyError):
        ss.send("nowhere", MockState("1"))


def test_zero_length_output_is_static_and_needs_comparable():
    actor = MockActor()
    ss = build(
        [DefaultProducer("A", ["StaticOnly"], [0])],
        [DefaultConsumer("C", ["StaticOnly"], Disjunctions(actor, 1))],
    )
    ss.serve()
    with pytest.raises(TypeError):
        ss.send("StaticOnly", "plain")
    ss.send("StaticOnly", MockState("7"))
    (item,) = actor.take(1)
    assert (item.name, item.data.v) == ("StaticOnly", "7")


def test_mismatched_buffer_lengths_rejected():
    ss = build([DefaultProducer("A", ["S1", "S2"], [1])], [])
    with pytest.raises(ValueError):
        ss.serve()


def test_consumer_of_unknown_stream_rejected():
    ss = build([], [DefaultConsumer("C", ["Missing"], Disjunctions(MockActor(), 1))])
    with pytest.raises(KeyError):
        ss.serve()