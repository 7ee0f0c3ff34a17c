"""Split long text into chunks that can be synthesized independently."""

SENTENCE_TERMINATORS = ".?!"

# Fractions of the window before which a break is considered too early
SENTENCE_BREAK_MIN = 0.7
WORD_BREAK_MIN = 0.5


def split_text(text: str, max_chunk_size: int) -> list[str]:
    """Split text into ordered chunks of at most max_chunk_size characters.

    Each window prefers to end after the last sentence terminator found in
    its final 30%, then at the last whitespace in its second half, and only
    then cuts hard at max_chunk_size. Whitespace at chunk boundaries is
    dropped; everything else is preserved in order.
    """
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size deve essere positivo: {max_chunk_size}")

    text = text.strip()
    if not text:
        return []
    if len(text) <= max_chunk_size:
        return [text]

    chunks = []
    start = 0
    length = len(text)

    while start < length:
        while start < length and text[start].isspace():
            start += 1
        if start >= length:
            break

        if length - start <= max_chunk_size:
            chunks.append(text[start:].rstrip())
            break

        window = text[start:start + max_chunk_size]
        cut = _find_break(window)
        chunks.append(window[:cut].rstrip())
        start += cut

    return chunks


def _find_break(window: str) -> int:
    """Return the offset at which to end this window."""
    size = len(window)

    sentence_min = int(size * SENTENCE_BREAK_MIN)
    for i in range(size - 1, sentence_min - 1, -1):
        if window[i] in SENTENCE_TERMINATORS:
            return i + 1

    word_min = max(int(size * WORD_BREAK_MIN), 1)
    for i in range(size - 1, word_min - 1, -1):
        if window[i].isspace():
            return i

    return size
