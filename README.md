# arcstream

Building blocks for in-process message pipelines. The package depends only on
the standard library and needs Python 3.11 or later.

## What is in it

**Sequencing** (`arcstream.filters`, `arcstream.sequencer`)

- `HeightFilter(names, signal_msg, height)` passes messages at its current
  height. It keeps messages from later heights back. A signal message at
  `height + 1` moves the filter to that height. A message below the current
  height raises `SequenceError`, and so does a signal that repeats or skips a
  height.
- `OrderFilter(names, height)` releases whitelisted messages in the order that
  `names` lists them.
- `Sequencer(filter).offer(msg)` returns the messages released by `msg`:
  - Messages that the filter does not handle pass straight through.
  - Messages that the filter holds back wait in `Sequencer.buffer`.
  - When the filter's state changes, the buffered messages are tried again.
- `Sequencer.to_buffer(msg)` adds a message to the buffer and keeps the buffer
  stably sorted by the filter's `less`.
- `Sequencers([...])` chains sequencers. It offers everything one releases to
  the next. `batch_offer(msgs)` does this for a whole list.
- `remove_nones(values)` returns the values that are not `None`.

Messages only need `name` and `height` attributes.

**Streaming** (`arcstream.streamer`, `arcstream.controllers`, `arcstream.buffers`)

- `StatefulStreamer` connects producers to consumers:
  - A `DefaultProducer` has a `name`, `outputs` and `buffer_lengths`.
  - A `DefaultConsumer` has a `name`, `inputs` and a `controller`.
- `serve()` creates one buffer per output and starts a daemon thread for each
  buffer and each controller. What the buffer does depends on its length:
  - A non-zero length gives a bounded `DefaultStreamBuffer`, which queues every
    item.
  - A length of `0` gives a `StaticStreamBuffer`. It holds a state and drops
    items whose `equals` matches the current one. Items without an `equals`
    method raise `TypeError`.
- `send(name, data)` puts data on a stream. An unknown stream name raises
  `KeyError`.
- `generate_dot()` returns the wiring as a Graphviz `digraph`.
- The controllers decide when a consumer's actor (anything with
  `consume(data)`) is fed:
  - `Conjunctions` waits until every input has a new item. It then passes the
    list of values in input order.
  - `Disjunctions(actor, buf_size)` passes each item as
    `Aggregated(name, data)`.
  - `CustomizableController(actor, passable)` passes the latest values whenever
    `passable(values)` is true.
  - `ShortCircuitActor(consumer, name)` forwards what it consumes to another
    consumer's controller. That consumer lists the input as `"#" + ...`. Run its
    `serve()` in a thread of your own.
- The `Counter` objects `buffers.PRODUCED` and `buffers.CONSUMED` count items per
  stream.

**Framing** (`arcstream.framing`)

- `split_payload(data, max_size, uuid=None)` cuts a payload into `KafkaMessage`
  parts. Each part has a 17-byte little-endian header. If `uuid` is not given, a
  random id is used.
- `join_payload(parts)` rebuilds the payload. It returns `None` while parts are
  missing.
- `Reassembler.feed(frame)` takes encoded frames in any order and returns the
  payload once it is complete.
- `PackageHeader` and `split_package` handle the 21-byte header format. In this
  format the header also records the frame size, and `decode` checks it.
- Bad frames raise `FramingError`.

**Logging** (`arcstream.logconf`, `arcstream.eventlog`, `arcstream.metainfo`)

- `load_config(path)` reads a TOML file into a `LogConfig`. The file has:
  - `Level` and `Version` at the top level.
  - A `[Console]` table with `SystemOut`.
  - A `[LocalFile]` table with `SaveFile`, `MaxSize`, `MaxBackups`, `MaxAge`,
    `Compress` and `Ignored`.

  Key names are matched case-insensitively.
- `new_logger(...)` builds a logger that writes JSON lines. It writes to stdout,
  to a size-rotated file, or to both.
- `init_log_system` and `init_log` load the configuration and return an
  `EventLogger`. `init_log` writes to `<root_dir>/log/<logname>`.
- `EventLogger.add_log(...)` writes one entry tagged with the thread, source,
  height, round and ids, and returns the log id:
  - Sources listed in `Ignored` are skipped.
  - The `panic` level raises `LogPanic` after the entry is written, and so does
    any unknown level.
- `EventLogger.for_thread(name)` gives a `LogWrapper` bound to one work thread.
- `MetaInfos` records which messages each work thread sends and receives.
  `write_file(service, directory)` writes them as a tab-separated
  `<service>.conf`.

**Utilities**

- `arcstream.waiting` has three classes:
  - `WaitObject` blocks until a result arrives or a timeout passes.
  - `WaitObjects` keeps wait objects keyed by message id.
  - `SyncTimer` calls a function at a fixed interval and can be used as a
    context manager.
- `arcstream.registry.InterfaceFactory` builds registered components by name.
  Non-empty `params` are passed to the component's `config` method. An unknown
  name raises `RegistryError`, and so does a component without `config`.

## Example

```python
from dataclasses import dataclass

from arcstream.filters import HeightFilter
from arcstream.sequencer import Sequencer


@dataclass
class Msg:
    name: str
    height: int


seq = Sequencer(HeightFilter(["eu_result"], "msg_block_completed", 0))
seq.offer(Msg("eu_result", 0))            # [Msg('eu_result', 0)]
seq.offer(Msg("eu_result", 1))            # [] - buffered
seq.offer(Msg("msg_block_completed", 1))  # [signal, Msg('eu_result', 1)]
```

```python
from arcstream.framing import Reassembler, split_payload

parts = split_payload(b"hello world", 4)
reassembler = Reassembler()
results = [reassembler.feed(part.encode()) for part in parts]
assert results[-1] == b"hello world"
```

## What it does not do

- The package has no broker client. `arcstream.framing` produces and reads the
  frames, but sending and receiving them is up to you.
- There is no remote procedure call layer.
- There is no metrics HTTP endpoint. The counters are plain in-process objects.
- There is no command-line program.
- The streamer's threads run until the process exits. They cannot be stopped.

## Installation

```
pip install .
```

## Tests

```
pip install .[test]
pytest
```