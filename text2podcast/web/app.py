"""FastAPI web interface for text2podcast."""

import asyncio
import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from text2podcast import __version__
from text2podcast.errors import (
    AuthError,
    CapabilityUnavailable,
    LockTimeout,
    QuotaError,
    SynthesisError,
    Text2PodcastError,
)
from text2podcast.models import VOICE_PRESETS, ProcessedContent, SourceKind
from text2podcast.pipeline import EpisodePipeline
from text2podcast.web.jobs import JobManager

logger = logging.getLogger(__name__)


# --- Pydantic models ---

class EpisodeRequest(BaseModel):
    title: str = Field(min_length=1)
    text: str = Field(min_length=1)
    kind: SourceKind = SourceKind.MARKDOWN
    voice: Optional[str] = None
    speed: Optional[float] = Field(default=None, ge=0.25, le=4.0)
    pitch: Optional[float] = Field(default=None, ge=-20.0, le=20.0)
    source_url: Optional[str] = None


def status_for(error: Text2PodcastError) -> int:
    """HTTP status code for a pipeline error."""
    if isinstance(error, LockTimeout):
        return 503
    if isinstance(error, QuotaError):
        return 429
    if isinstance(error, (AuthError, CapabilityUnavailable)):
        return 503
    if isinstance(error, SynthesisError):
        return 502
    return 500


# --- App factory ---

def create_app(pipeline: Optional[EpisodePipeline] = None) -> FastAPI:
    app = FastAPI(title="text2podcast", version=__version__)

    if pipeline is None:
        from text2podcast.config import get_settings
        from text2podcast.pipeline import build_pipeline
        pipeline = build_pipeline(get_settings())

    store = pipeline.store
    jobs = JobManager()

    @app.exception_handler(Text2PodcastError)
    async def pipeline_error_handler(request: Request, exc: Text2PodcastError):
        return JSONResponse(
            status_code=status_for(exc),
            content={"success": False, "error": type(exc).__name__, "message": str(exc)},
        )

    # --- Routes ---

    @app.get("/api/health")
    async def health():
        engine = pipeline.orchestrator.synthesizer
        return {
            "status": "healthy" if engine.available else "degraded",
            "version": __version__,
            "engine": engine.name,
            "synthesis_available": engine.available,
        }

    @app.get("/api/voices")
    async def list_voices_route():
        return {"voices": sorted(VOICE_PRESETS)}

    @app.post("/api/episodes", status_code=202)
    async def create_episode(req: EpisodeRequest):
        if req.voice and req.voice not in VOICE_PRESETS:
            raise HTTPException(400, detail=f"Preset voce sconosciuto: {req.voice}")

        job_id = uuid.uuid4().hex[:12]
        jobs.create(job_id, title=req.title)
        content = ProcessedContent(title=req.title, text=req.text, source_kind=req.kind)

        def run_creation():
            jobs.update_status(job_id, "synthesizing")

            def on_progress(current, total, _label):
                jobs.update_progress(job_id, current, total)

            try:
                episode = pipeline.create_episode(
                    content,
                    voice=req.voice,
                    source_url=req.source_url,
                    speaking_rate=req.speed,
                    pitch=req.pitch,
                    on_progress=on_progress,
                )
                jobs.set_episode(job_id, episode.id)
                jobs.update_status(job_id, "done")
            except Text2PodcastError as e:
                logger.error("Creazione episodio fallita per job %s: %s", job_id, e)
                jobs.set_error(job_id, str(e), type(e).__name__)
                jobs.update_status(job_id, "error")
            except Exception as e:
                logger.exception("Creazione episodio fallita per job %s", job_id)
                jobs.set_error(job_id, str(e), type(e).__name__)
                jobs.update_status(job_id, "error")

        thread = threading.Thread(target=run_creation, daemon=True)
        thread.start()

        return {"job_id": job_id, "status": "queued"}

    @app.get("/api/jobs/{job_id}")
    async def get_job_status(job_id: str):
        job = jobs.get(job_id)
        if not job:
            raise HTTPException(404, detail="Job non trovato")
        return job

    @app.get("/api/progress/{job_id}")
    async def progress_stream(job_id: str):
        if not jobs.get(job_id):
            raise HTTPException(404, detail="Job non trovato")

        async def event_generator():
            last_chunk = -1
            while True:
                job = jobs.get(job_id)
                if not job:
                    break

                current = job["current_chunk"]
                status = job["status"]

                if current != last_chunk or status in ("done", "error"):
                    last_chunk = current
                    yield {
                        "event": "progress",
                        "data": json.dumps({
                            "status": status,
                            "current_chunk": current,
                            "total_chunks": job["total_chunks"],
                        }),
                    }

                if status == "done":
                    yield {
                        "event": "done",
                        "data": json.dumps({"status": "done", "episode_id": job["episode_id"]}),
                    }
                    break

                if status == "error":
                    yield {
                        "event": "error",
                        "data": json.dumps({
                            "status": "error",
                            "error": job.get("error") or "Errore sconosciuto",
                        }),
                    }
                    break

                await asyncio.sleep(0.5)

        return EventSourceResponse(event_generator())

    # Store routes block on the file lock and disk I/O, so they run in the threadpool

    @app.get("/api/episodes")
    def list_episodes(limit: Optional[int] = None):
        episodes = store.list_recent(limit) if limit else store.list_all()
        return {"episodes": [ep.to_dict() for ep in episodes]}

    @app.get("/api/episodes/{episode_id}")
    def get_episode(episode_id: str):
        episode = store.get(episode_id)
        if not episode:
            raise HTTPException(404, detail="Episodio non trovato")
        return {"episode": episode.to_dict()}

    @app.delete("/api/episodes/{episode_id}")
    def delete_episode(episode_id: str):
        if not pipeline.delete_episode(episode_id):
            raise HTTPException(404, detail="Episodio non trovato")
        return {"success": True, "episode_id": episode_id}

    @app.get("/api/stats")
    def get_stats():
        stats = store.stats()
        return {"stats": {
            "total_episodes": stats.total_episodes,
            "total_duration": stats.total_duration,
            "total_size": stats.total_size,
            "oldest_episode": stats.oldest.isoformat() if stats.oldest else None,
            "newest_episode": stats.newest.isoformat() if stats.newest else None,
            "average_episode_duration": stats.average_duration,
            "average_file_size": stats.average_size,
        }}

    @app.post("/api/maintenance")
    def maintenance():
        return {"maintenance": pipeline.maintenance()}

    @app.get("/podcast.xml")
    def podcast_feed():
        return Response(content=pipeline.feed.generate(), media_type="application/rss+xml")

    @app.get("/audio/{file_name}")
    def download_audio(file_name: str):
        episode = next((ep for ep in store.list_all() if ep.file_name == file_name), None)
        if not episode:
            raise HTTPException(404, detail="Audio non trovato")

        path = Path(episode.file_path)
        if not path.exists():
            raise HTTPException(404, detail="File audio mancante")

        store.record_download(episode.id)
        return FileResponse(str(path), filename=episode.file_name, media_type="audio/mpeg")

    return app


# --- CLI entry point ---

def main():
    """Run the text2podcast web server."""
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="text2podcast web interface")
    parser.add_argument("--host", default="127.0.0.1", help="Host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    app = create_app()
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
