import base64
import binascii

from .utils import EncodingError

LINE_WIDTH = 64


def wrap(data: bytes) -> str:
    """Base64 encode data and break it into lines of LINE_WIDTH characters."""
    encoded = base64.b64encode(data).decode('ascii')
    return '\n'.join(
        encoded[i:i + LINE_WIDTH] for i in range(0, len(encoded), LINE_WIDTH))


def unwrap(text: str) -> bytes:
    cleaned = text.strip().replace('\r', '').replace('\n', '')
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as error:
        raise EncodingError(
            f"Failed to decode Base64 ciphertext: {error}") from error
