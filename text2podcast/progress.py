"""Progress reporting for chunked synthesis."""

from tqdm import tqdm


class ProgressReporter:
    """Wraps tqdm for segment-level progress reporting."""

    def __init__(self, total_chunks: int):
        self._bar = tqdm(
            total=total_chunks,
            desc="Sintesi",
            unit="seg",
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} segmenti [{elapsed}<{remaining}]",
        )

    def update(self, current: int, total: int, label: str) -> None:
        """Update progress after a segment is synthesized."""
        if self._bar.total != total:
            self._bar.total = total
        self._bar.set_postfix_str(label, refresh=False)
        self._bar.update(current - self._bar.n)

    def close(self) -> None:
        self._bar.close()
