import logging
from typing import Iterator

from ..exceptions import InputFileError
from ..config import ENCODING_FALLBACK_ORDER

log = logging.getLogger(__name__)

_DETECTION_CHUNK_SIZE = 1 << 16


def detect_encoding(filepath: str) -> str:
    """Finds the first encoding in ENCODING_FALLBACK_ORDER that decodes the whole file.

    The file is read in chunks, so arbitrarily large inputs are fine.

    Args:
        filepath: Path to the astrometry file.

    Returns:
        Name of the encoding to use.

    Raises:
        InputFileError: If the file cannot be opened or decoded.
    """
    for encoding in ENCODING_FALLBACK_ORDER:
        try:
            with open(filepath, 'r', encoding=encoding) as f:
                while f.read(_DETECTION_CHUNK_SIZE):
                    pass
            log.debug(f"Reading {filepath} as {encoding}")
            return encoding
        except UnicodeDecodeError:
            log.debug(f"Encoding {encoding} failed, trying next...")
            continue
        except FileNotFoundError as e:
            log.error(f"File not found: {e}")
            raise InputFileError(f"File not found: {filepath}")
        except PermissionError as e:
            log.error(f"Permission denied: {e}")
            raise InputFileError(f"Permission denied accessing file: {filepath}")
        except OSError as e:
            log.error(f"Could not read {filepath}: {e}")
            raise InputFileError(f"Could not read file: {filepath}")

    raise InputFileError(f"Could not decode file '{filepath}' with any supported encoding")


def iter_records(filepath: str, encoding: str) -> Iterator[str]:
    """Yields the lines of an astrometry file one at a time.

    Universal newline mode is used, so files with CR, CRLF or LF endings
    all come out as LF-terminated lines.
    """
    try:
        with open(filepath, 'r', encoding=encoding, newline=None) as f:
            yield from f
    except OSError as e:
        log.error(f"Could not read {filepath}: {e}")
        raise InputFileError(f"Could not read file: {filepath}") from e
