"""In-memory job tracking for episode creation in the background."""

import threading
from typing import Optional


class JobManager:
    """Thread-safe in-memory job store.

    Status state machine: queued → synthesizing → done | error
    """

    def __init__(self):
        self._jobs: dict[str, dict] = {}
        self._lock = threading.Lock()

    def create(self, job_id: str, *, title: str) -> dict:
        with self._lock:
            job = {
                "job_id": job_id,
                "status": "queued",
                "title": title,
                "episode_id": None,
                "current_chunk": 0,
                "total_chunks": 0,
                "error": None,
                "error_kind": None,
            }
            self._jobs[job_id] = job
            return dict(job)

    def get(self, job_id: str) -> Optional[dict]:
        with self._lock:
            job = self._jobs.get(job_id)
            return dict(job) if job else None

    def update_status(self, job_id: str, status: str) -> None:
        with self._lock:
            if job_id in self._jobs:
                self._jobs[job_id]["status"] = status

    def update_progress(self, job_id: str, current: int, total: int) -> None:
        with self._lock:
            if job_id in self._jobs:
                self._jobs[job_id]["current_chunk"] = current
                self._jobs[job_id]["total_chunks"] = total

    def set_episode(self, job_id: str, episode_id: str) -> None:
        with self._lock:
            if job_id in self._jobs:
                self._jobs[job_id]["episode_id"] = episode_id

    def set_error(self, job_id: str, error: str, kind: str) -> None:
        with self._lock:
            if job_id in self._jobs:
                self._jobs[job_id]["error"] = error
                self._jobs[job_id]["error_kind"] = kind
