# spotcore

Protocol building blocks for a Spotify Connect client, in plain Python.

## What it provides

- `spotcore.shannon.Shannon`: the Shannon stream cipher with its built-in
  MAC. Call `key()` once and `nonce()` before each message; `encrypt()`,
  `decrypt()` and `stream()` return new bytes, `mac_only()` feeds data into
  the MAC, and `finish(length)` returns a MAC of `length` bytes.
- `spotcore.pb_reader` and `spotcore.pb_writer`: a protobuf wire-format
  reader (`PbReader`, `WireType`, `decode_zigzag`) and writer (`PbWriter`,
  `encode_zigzag32`, `encode_zigzag64`) covering varints, zigzag values,
  fixed-width integers, length-delimited fields and embedded messages.
- `spotcore.protobuf`: messages declared as dataclasses. Give each field a
  tag with `pb_field(tag)`, then use `encode_message(message)` and
  `decode_message(cls, data)`; `find_field(cls, tag)` looks a field up by
  tag. Supported field types are `int`, `bool`, `str`, `bytes`, enums,
  nested message dataclasses, `list[...]` and optional (`None`-able) fields.
  Packed repeated scalars are skipped when decoding.
- `spotcore.crypto`: `base64_encode`, `base64_decode`, `sha1`, `sha1_hmac`,
  `aes_ctr_xcrypt`, `aes_ecb_decrypt`, `pbkdf2_hmac_sha1`, `random_bytes`,
  and `DiffieHellman`, which takes the prime and generator you supply and
  offers `init_keys()` and `calculate_shared(remote_key)`.
- `spotcore.json_format.format_json`: renders a flat mapping of strings and
  integers as tab-indented JSON.
- `spotcore.login_blob`: `LoginBlob` credentials built with
  `from_user_pass`, `from_zeroconf` or `from_json`, and saved with
  `to_json()`; `decode_blob` and `decode_blob_secondary` decrypt the two
  layers of a zeroconf blob and raise `ValueError` on a bad checksum or
  truncated data.
- `spotcore.config.Config`: a JSON settings file holding `device_name`,
  `volume` (default 32767) and `format` (an `AudioFormat`: 96, 160 or
  320 kbit/s Ogg Vorbis, default 160). `load()` and `save()` return `False`
  when no path is set; a missing or empty file resets the defaults.
- `spotcore.audio_chunk`: `AudioChunk`, a byte range of an encrypted audio
  file with `append_data()` and `decrypt()` (AES-CTR at the right block
  offset), plus `header_loaded` and `loaded` events; `iv_sum(n)` gives the
  audio IV advanced by `n` blocks.
- `spotcore.mercury_response.MercuryResponse.parse(data)`: decodes a Mercury
  reply into its sequence id, `MercuryHeader` and payload parts.
- `spotcore.plain_connection.PlainConnection`: the length-prefixed TCP link
  to an access point. `recv_packet()` returns the raw bytes of one packet,
  size prefix included; `send_prefix_packet()` frames and sends one. A
  timeout handler decides whether a stalled read or write gives up with
  `ConnectionLost`. It can be used as a context manager. The module also
  defines a `Packet` dataclass (command byte and payload).
- `spotcore.ap_resolve`: `fetch_ap_list()`, `parse_first_ap(body)` and
  `fetch_first_ap_address()`, raising `ResolveError` on failure.

## What it does not do

There is no complete client here: no session handshake or authentication
exchange, no Mercury request manager, no chunk download scheduling, no
Vorbis decoding or audio output, no player state and no command to run.
These modules are the pieces such a client is built from.

## Installing

    pip install .

## Examples

Encrypting with the Shannon cipher:

    from spotcore.shannon import Shannon

    cipher = Shannon()
    cipher.key(bytes(32))
    cipher.nonce(bytes(4))
    ciphertext = cipher.encrypt(b"hello")
    mac = cipher.finish(4)

Storing credentials:

    from spotcore.login_blob import LoginBlob

    password = "password"
    blob = LoginBlob.from_user_pass("someone@example.com", password)
    text = blob.to_json()
    again = LoginBlob.from_json(text)

Declaring a protobuf message:

    from dataclasses import dataclass
    from spotcore.protobuf import pb_field, encode_message, decode_message

    @dataclass
    class Greeting:
        name: str = pb_field(1, default="")
        count: int = pb_field(2, default=0)

    data = encode_message(Greeting(name="hi", count=3))
    assert decode_message(Greeting, data) == Greeting(name="hi", count=3)

## Tests

    pip install .[test]
    pytest