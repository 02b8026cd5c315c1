from typing import Any, Union

import msgspec

__all__ = ("decode_json", "encode_json")

_encoder = msgspec.json.Encoder(enc_hook=str)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any) -> str:
    """Encode ``data`` to a JSON string; unknown types are rendered with ``str``."""
    return _encoder.encode(data).decode("utf-8")


def decode_json(data: "Union[str, bytes]") -> Any:
    return _decoder.decode(data)
