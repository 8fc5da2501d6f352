# friiorec

Building blocks for recording digital broadcasts from ISDB tuners
(terrestrial, CATV, BS and CS). The package handles the data side of a
recorder. It does not talk to the device.

## What it provides

- **Channels and options** (`friiorec.cli`)
  - `parse_channel(chstr, use_hdus, use_hdp)` turns a channel name into
    a `ChannelSpec` holding `tuner_type`, `band` and `channel`. It
    accepts names such as `27`, `K30`, `B3`, `BS03_0`, `C5` or `CS10`.
  - `parse_options(argv)` reads a recorder command line into an `Args`
    dataclass. The command line has options like `--b25`, `--round N`,
    `--hdus`, `--lockfile`, `--udp ip --port N`, `--http PortNo` and
    `--sid SID1,SID2`, followed by `channel recsec destfile`.
  - Invalid input raises `UsageError`, which has `exit_code = 1`.
  - `usage_text(prog)` returns the usage message together with the
    channel table.
  - `parse_http_request(line)` takes a request line such as
    `GET /C8/333 HTTP/1.1` and returns `(channel, service list)`.
  - `write_chunks(write, data)` writes data in pieces of at most
    `SIZE_CHUNK` (1316) bytes.
- **Descrambling** (`friiorec.descramble`)
  - `packet_decrypt(data)` undoes the fixed DES-like block scrambling
    that some tuners apply to the payload of each 188-byte TS packet.
  - `block_decrypt(key, data)` exposes the underlying block cipher.
- **HDUS stream handling** (`friiorec.hdus`)
  - `HdusStreamDecoder(mode)` aligns a raw byte stream on the `0x47`
    sync byte and descrambles every complete packet. It keeps a partial
    packet until the next `feed()`, and `reset()` discards it.
  - `mode` is a `DecryptMode`: `XOR` or `DES`.
  - `channel_frequency(band, channel)` gives the frequency for a UHF or
    CATV channel.
  - `signal_level(raw_value)` and `carrier_to_noise(raw_value)` convert
    the raw demodulator reading into dB figures.
- **Service splitting** (`friiorec.tssplitter`)
  - `Splitter(sid)` keeps only the chosen services. A service is given
    by its id or by one of the keywords `hd`/`sd1`, `sd2`, `sd3`,
    `1seg`, `all` and `epg`.
  - `select(data)` returns `True` once every PID to keep is known.
  - `split(data)` returns the kept packets, with the PAT rebuilt and
    given a fresh CRC.
  - `crc32_mpeg`, `get_pid` and `parse_sid_list` are available as
    helpers.
- **Buffering** (`friiorec.ringbuf`)
  - `RingBuffer(size, factory)` is a thread-safe FIFO of reusable slots.
  - A producer reserves a slot with `push_slot()` and marks it filled
    with `set_ready()`.
  - A consumer takes slots with `pop()`, `pop_blocking()` or `peek()`.
  - If a slot is not filled before its timeout, the buffer calls that
    slot's handler and skips it.
  - Running out of slots raises `RingBufferOverflowError`.
  - `interrupt()` makes a waiting consumer raise `InterruptedError_`.
- **UDP output** (`friiorec.udp`)
  - `UdpSender` sends stream data to a host and port:
    `init(host, port)`, `send(data)` and `shutdown()`.
  - It can also be used as a context manager.
- **Errors and constants**
  - `friiorec.errors` defines `TraceableError` and its subclasses
    `UsbError`, `BusyError`, `NotReadyError` and `IoError`.
  - It also has enums for the numeric status codes of the decoder
    layers.
  - `friiorec.settings` defines `TunerType`, `BandType` and the tuning
    constants.

## Example

```python
from friiorec.cli import parse_channel
from friiorec.tssplitter import Splitter

spec = parse_channel("BS03_0", False, False)

splitter = Splitter("hd")
with open("input.ts", "rb") as src, open("output.ts", "wb") as dst:
    data = bytearray(src.read())
    if splitter.select(data):
        dst.write(splitter.split(data[: len(data) // 188 * 188]))
```

Descrambling a stream as it arrives:

```python
from friiorec.hdus import DecryptMode, HdusStreamDecoder

decoder = HdusStreamDecoder(DecryptMode.XOR)
for chunk in chunks:          # raw bytes from the tuner
    packets = decoder.feed(chunk)
```

## What it does not do

The package has no USB device access. It does not open, initialise or
tune a tuner, and it does not read the bulk stream itself.

It has no B25 decoding. The `--b25` options are parsed, but nothing in
the package acts on them.

It has no recording command and no HTTP streaming server. You supply
the input bytes and decide where the output goes.

Requires Python 3.10 or later and has no third-party dependencies.