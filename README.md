# wsthroughput

A small WebSocket throughput benchmark built on aiohttp. It has two parts:

- a **server** (`wsthroughput.server`) that accepts WebSocket connections on
  `/ws`. On each connection it first sends a ping, then for each size in
  1, 3, 6, 10, 20, 30, 40, 50, 60, 100 and 1000 MiB it sends a text
  announcement (`Sending message with size <bytes>`) followed by a binary
  message of that many bytes (one random MiB block repeated). It pauses 0.3
  seconds between sizes and finally closes the connection with a normal close
  code and the reason `Goodbye`. Anything the client sends is printed to
  standard output. Every other path is served as a static file from an assets
  directory (a directory request serves its `index.html`).
- a **client** (`wsthroughput.client`) that opens one or more concurrent
  connections, pings the server with `Hello, Server!`, and for every binary
  message prints its size, the time since the last text message and the
  resulting speed. It stops when the server closes the connection.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Usage

Start the server:

```
wsthroughput-server
```

Options:

- `--host` – address to listen on (default `127.0.0.1`)
- `--port` – port to listen on (default `3000`)
- `--assets` – directory of static files (default `assets`, relative to the
  current directory)
- `--log-level` – logging level (default `INFO`)

In another terminal, run the client:

```
wsthroughput-client
```

Options:

- `--clients` – number of concurrent clients (default `1`)
- `--url` – WebSocket URL of the server (default `ws://127.0.0.1:3000/ws`)
- `--log-level` – logging level (default `INFO`)

The client prints one line per binary message, for example:

```
>>> 10.0 MB took ~52ms with speed ~192.3 MB/s
```

When every client has finished it logs the total time for the run. A client
whose handshake fails logs the error and counts as finished.

## Library use

The size and speed formatters can be used on their own; both use 1024-based
units and one decimal place, and raise `ValueError` for negative input:

```python
from wsthroughput.units import human_readable_bytes, human_readable_speed

human_readable_bytes(1536)             # "1.5 KB"
human_readable_speed(2 * 1024**2, 2.0) # "1.0 MB/s"
```

`human_readable_speed` also accepts a `datetime.timedelta` as the elapsed time.

`wsthroughput.server.create_app(assets_dir)` builds the aiohttp application,
so the server can be embedded in another runner, and
`wsthroughput.server.generate_repeated_random_bytes(size)` returns `size` MiB
of payload. `wsthroughput.client.run_clients(n_clients, url)` is a coroutine
that runs a batch of clients concurrently and returns the total wall time in
seconds; `wsthroughput.client.spawn_client(who, url)` runs a single client and
returns the number of messages it processed.

## What it does not do

- No assets are shipped: the static file route only serves what is in the
  directory given with `--assets`, so there is no browser page unless you
  provide one.
- The payload sizes, the pause between them and the close reason are fixed;
  there are no options to change them.
- The largest payload is 1000 MiB and is built in memory on both ends, so the
  server and client need enough RAM for it.
- There is no TLS support in the server, and the client does not send any
  messages of its own beyond the initial ping.