"""Length helpers that count UTF-16 code units, the way browsers report
``String.length``. Characters outside the BMP (most emoji) count as two."""

MAX_QUESTION_LENGTH = 100


def utf16_length(text: str) -> int:
    return len(text.encode('utf-16-le')) // 2


def truncate_utf16(text: str, limit: int, suffix: str = '...') -> str:
    """Cut ``text`` to ``limit`` code units and append ``suffix`` if anything was dropped.

    A surrogate pair straddling the cut is dropped whole.
    """
    if utf16_length(text) <= limit:
        return text
    head = text.encode('utf-16-le')[:limit * 2]
    return head.decode('utf-16-le', errors='ignore') + suffix
