"""Protocol building blocks for a Spotify Connect client: cipher, protobuf, credentials, audio chunks and access point link."""

__version__ = "0.1.0"