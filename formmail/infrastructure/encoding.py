from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

DEFAULT_ENCODING = "utf-8"


class TranscodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def transcode_body(body: Union[str, bytes, bytearray, None], source_encoding: Optional[str] = None) -> TranscodeResult:
    """
    Bring a rendered body to text before it goes to the transport.

    Text passes through untouched. Bytes are decoded from ``source_encoding``
    (UTF-8 when unset). A failed decode never raises: the result carries the
    error and a replacement-decoded text the caller may fall back to.
    """
    if body is None:
        return TranscodeResult(text="")
    if isinstance(body, str):
        return TranscodeResult(text=body)

    encoding = source_encoding or DEFAULT_ENCODING
    raw = bytes(body)
    try:
        return TranscodeResult(text=raw.decode(encoding))
    except (UnicodeDecodeError, LookupError) as e:
        return TranscodeResult(text=raw.decode(DEFAULT_ENCODING, errors="replace"), error=str(e))
