"""Command-line interface for text2podcast."""

import argparse
import logging
import sys
from pathlib import Path

from text2podcast import __version__
from text2podcast.errors import Text2PodcastError
from text2podcast.models import VOICE_PRESETS, ProcessedContent, SourceKind


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="text2podcast",
        description="Converti testi in episodi di un podcast personale",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--metadata-file", default=None, help="File JSON dei metadati episodi")
    parser.add_argument("--audio-dir", default=None, help="Directory dei file audio")
    parser.add_argument("--max-episodes", type=int, default=None, help="Numero massimo di episodi conservati")
    parser.add_argument("-e", "--engine", default=None, help="Motore TTS da usare (default: edge)")
    parser.add_argument("--verbose", action="store_true", help="Abilita log dettagliati")

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Sintetizza un file di testo come nuovo episodio")
    add.add_argument("input_file", help="File di testo o markdown da leggere")
    add.add_argument("-t", "--title", default=None, help="Titolo (default: nome del file)")
    add.add_argument(
        "-v", "--voice",
        default=None,
        choices=sorted(VOICE_PRESETS),
        help="Preset voce",
    )
    add.add_argument("-s", "--speed", type=float, default=None, help="Velocità di lettura (0.25-4.0)")
    add.add_argument("--pitch", type=float, default=None, help="Pitch in semitoni (-20 a 20)")
    add.add_argument("--source-url", default=None, help="URL di origine del contenuto")
    add.add_argument(
        "--kind",
        default=SourceKind.MARKDOWN.value,
        choices=[k.value for k in SourceKind],
        help="Tipo di sorgente (default: markdown)",
    )

    lst = sub.add_parser("list", help="Elenca gli episodi, dal più recente")
    lst.add_argument("-n", "--limit", type=int, default=None, help="Numero massimo di episodi")

    delete = sub.add_parser("delete", help="Elimina un episodio e il suo audio")
    delete.add_argument("episode_id")

    sub.add_parser("stats", help="Mostra statistiche dello storage")
    sub.add_parser("verify", help="Verifica l'integrità tra metadati e file audio")
    sub.add_parser("cleanup", help="Rimuove i file audio orfani")

    feed = sub.add_parser("feed", help="Stampa il feed RSS del podcast")
    feed.add_argument("-o", "--output", default=None, help="Scrivi il feed su file")

    voices = sub.add_parser("voices", help="Elenca le voci disponibili per l'engine")
    voices.add_argument("-l", "--language", default="en", help="Codice lingua (default: en)")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        _run(args, parser)
    except KeyboardInterrupt:
        print("\n\nOperazione interrotta.")
        sys.exit(1)
    except ValueError as e:
        logging.error("Parametro non valido: %s", e)
        sys.exit(2)
    except Text2PodcastError as e:
        logging.error("Errore: %s", e)
        if args.verbose and e.original_error:
            logging.error("Causa: %r", e.original_error)
        sys.exit(1)


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    from text2podcast.config import Settings
    from text2podcast.pipeline import build_pipeline

    overrides = {
        "metadata_file": args.metadata_file,
        "audio_output_dir": args.audio_dir,
        "max_episodes": args.max_episodes,
        "tts_engine": args.engine,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})

    if args.command == "add":
        from text2podcast.audio.audio_utils import check_ffmpeg
        check_ffmpeg()

    pipeline = build_pipeline(settings)
    store = pipeline.store

    if args.command == "add":
        _add(args, parser, pipeline)

    elif args.command == "list":
        episodes = store.list_recent(args.limit) if args.limit else store.list_all()
        if not episodes:
            print("Nessun episodio.")
        for ep in episodes:
            print(f"  {ep.id}  {ep.created_at:%Y-%m-%d %H:%M}  {ep.duration:>5}s  {ep.title}")

    elif args.command == "delete":
        if not pipeline.delete_episode(args.episode_id):
            print(f"Episodio non trovato: {args.episode_id}")
            sys.exit(1)
        print(f"Episodio eliminato: {args.episode_id}")

    elif args.command == "stats":
        stats = store.stats()
        print(f"Episodi:        {stats.total_episodes}")
        print(f"Durata totale:  {stats.total_duration}s (media {stats.average_duration:.0f}s)")
        print(f"Spazio totale:  {stats.total_size} byte (media {stats.average_size:.0f})")
        print(f"Più vecchio:    {stats.oldest or '-'}")
        print(f"Più recente:    {stats.newest or '-'}")

    elif args.command == "verify":
        report = store.verify_integrity()
        if report.valid:
            print("Storage integro.")
            return
        for issue in report.issues:
            print(f"  - {issue}")
        sys.exit(1)

    elif args.command == "cleanup":
        removed = store.cleanup_orphans()
        print(f"Rimossi {removed} file orfani.")

    elif args.command == "feed":
        xml = pipeline.feed.generate()
        if args.output:
            Path(args.output).write_text(xml, encoding="utf-8")
            print(f"Feed scritto in {args.output}")
        else:
            print(xml)

    elif args.command == "voices":
        engine = pipeline.orchestrator.synthesizer
        voices = engine.list_voices(args.language)
        if not voices:
            print(f"Nessuna voce trovata per lingua '{args.language}' con engine '{engine.name}'")
            return
        print(f"\nVoci disponibili ({engine.name}, lingua: {args.language}):\n")
        for v in voices:
            gender = v.get("gender", "")
            print(f"  {v['name']:<35} {v['language']:<10} {gender}")


def _add(args: argparse.Namespace, parser: argparse.ArgumentParser, pipeline) -> None:
    from text2podcast.progress import ProgressReporter

    input_path = Path(args.input_file)
    if not input_path.exists():
        parser.error(f"File non trovato: {input_path}")

    text = input_path.read_text(encoding="utf-8")
    content = ProcessedContent(
        title=args.title or input_path.stem,
        text=text,
        source_kind=SourceKind(args.kind),
    )

    progress = {"reporter": None}

    def on_progress(current: int, total: int, label: str) -> None:
        if progress["reporter"] is None:
            progress["reporter"] = ProgressReporter(total)
        progress["reporter"].update(current, total, label)

    try:
        episode = pipeline.create_episode(
            content,
            voice=args.voice,
            source_url=args.source_url,
            speaking_rate=args.speed,
            pitch=args.pitch,
            on_progress=on_progress,
        )
    finally:
        if progress["reporter"]:
            progress["reporter"].close()

    print(f"\nEpisodio creato: {episode.id} ({episode.duration}s) -> {episode.file_path}")


if __name__ == "__main__":
    main()
