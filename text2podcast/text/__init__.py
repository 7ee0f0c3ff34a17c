"""Pure text transforms applied before speech synthesis."""

from text2podcast.text.chunker import split_text
from text2podcast.text.prep import prepare_text

__all__ = ["prepare_text", "split_text"]
