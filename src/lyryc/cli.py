"""Command-line interface using Click."""

import asyncio
import json
import sys
from pathlib import Path

import click

from . import __version__
from .config import get_cache_dir
from .core.language import SUPPORTED_LANGUAGES
from .exceptions import LyrycError
from .utils.logging import setup_logging


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(), help='Log to file')
@click.pass_context
def cli(ctx, verbose, log_file):
    """Lyryc - timed lyrics for karaoke-style highlighting."""
    ctx.ensure_object(dict)
    # keep stdout clean for JSON unless asked for detail
    logger = setup_logging(
        level="DEBUG" if verbose else "WARNING",
        log_file=Path(log_file) if log_file else None,
        verbose=verbose
    )
    ctx.obj['logger'] = logger
    ctx.obj['verbose'] = verbose


@cli.command()
@click.argument('lrc_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--words', is_flag=True, help='Fill in word timings')
def parse(lrc_file, words):
    """Parse an LRC file and print its lines as JSON."""
    from .core.lrc import parse_lrc
    from .core.word_timing import ensure_word_timings

    lines = parse_lrc(_read_text(lrc_file))
    if words:
        lines = ensure_word_timings(lines)
    _echo_json([line.to_dict() for line in lines])


@cli.command()
@click.argument('text_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--duration', type=float, required=True, help='Track length in seconds')
@click.option('--min-line', type=float, default=None, help='Minimum line duration (s)')
@click.option('--max-line', type=float, default=None, help='Maximum line duration (s)')
@click.option('--words', is_flag=True, help='Fill in word timings')
@click.option('--lrc', 'as_lrc', is_flag=True, help='Print LRC instead of JSON')
@click.pass_context
def align(ctx, text_file, duration, min_line, max_line, words, as_lrc):
    """Spread plain lyrics over a track of known length."""
    from .config import MAX_LINE_DURATION, MIN_LINE_DURATION
    from .core.lrc import to_lrc
    from .core.text_align import align_plain_text
    from .core.word_timing import ensure_word_timings

    logger = ctx.obj['logger']
    try:
        aligned = align_plain_text(
            _read_text(text_file),
            duration,
            MIN_LINE_DURATION if min_line is None else min_line,
            MAX_LINE_DURATION if max_line is None else max_line,
        )
    except LyrycError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    lines = [line.to_lyric_line() for line in aligned]
    if words:
        lines = ensure_word_timings(lines)
    if as_lrc:
        click.echo(to_lrc(lines, word_tags=words))
    else:
        _echo_json([line.to_dict() for line in lines])


@cli.command()
@click.argument('produced', type=click.Path(exists=True, dir_okay=False))
@click.argument('reference', type=click.Path(exists=True, dir_okay=False))
def compare(produced, reference):
    """Compare line timings of two LRC files."""
    from .core.comparison import compare_lrc

    metrics = compare_lrc(_read_text(produced), _read_text(reference))
    _echo_json(metrics.to_dict())


@cli.command()
@click.argument('title')
@click.argument('artist')
@click.option('--audio', 'audio_source', help='Audio file path or URL for refinement')
@click.option('--duration', type=float, default=None, help='Track length in seconds')
@click.option('--no-ai', is_flag=True, help='Skip audio-based refinement')
@click.option('--no-cache', is_flag=True, help='Bypass the lyrics cache')
@click.option('--cache-dir', type=click.Path(), help='Cache directory')
@click.option('--language', type=click.Choice(['auto'] + SUPPORTED_LANGUAGES), default='auto',
              help='Lyrics language (detected by default)')
@click.option('--lrc', 'as_lrc', is_flag=True, help='Print LRC instead of JSON')
@click.pass_context
def fetch(ctx, title, artist, audio_source, duration, no_ai, no_cache, cache_dir, language, as_lrc):
    """Fetch and time lyrics for a track."""
    from .core.lrc import to_lrc
    from .core.lyrics_processor import LyricsProcessor, ProcessorConfig
    from .utils.cache import DiskLyricsCache

    logger = ctx.obj['logger']
    try:
        cache = None
        if not no_cache:
            cache = DiskLyricsCache(Path(cache_dir) if cache_dir else get_cache_dir())
        config = ProcessorConfig(language=language)
        if no_ai:
            config.enable_ai_alignment = False
        processor = LyricsProcessor(cache=cache, config=config)
        result = asyncio.run(
            processor.process_track_lyrics(
                title, artist, audio_url=audio_source, duration_sec=duration
            )
        )
    except LyrycError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    if result.status == "error":
        logger.error(f"❌ {result.error}")
        sys.exit(1)
    if as_lrc:
        if not result.found:
            logger.error(f"❌ No lyrics found for {title} - {artist}")
            sys.exit(1)
        click.echo(to_lrc(result.lyrics, word_tags=result.has_word_timings))
    else:
        _echo_json(result.to_dict())


@cli.group()
def cache():
    """Cache management commands."""
    pass


@cache.command()
@click.option('--cache-dir', type=click.Path(), help='Cache directory')
def stats(cache_dir):
    """Show cache statistics."""
    from .utils.cache import DiskLyricsCache
    lyrics_cache = DiskLyricsCache(Path(cache_dir) if cache_dir else get_cache_dir())
    stats = lyrics_cache.stats()
    click.echo(f"Cache Directory: {stats['cache_dir']}")
    click.echo(f"Entries: {stats['entries']}")
    click.echo(f"Total Size: {stats['total_size_kb']:.1f} KB")
    click.echo(f"TTL: {stats['ttl_days']:g} days")


@cache.command()
@click.option('--cache-dir', type=click.Path(), help='Cache directory')
@click.option('--expired-only', is_flag=True, help='Only remove expired entries')
@click.confirmation_option(prompt='Are you sure you want to clear the lyrics cache?')
def clear(cache_dir, expired_only):
    """Remove cached lyrics."""
    from .utils.cache import DiskLyricsCache
    lyrics_cache = DiskLyricsCache(Path(cache_dir) if cache_dir else get_cache_dir())
    if expired_only:
        removed = lyrics_cache.cleanup_expired()
    else:
        removed = lyrics_cache.clear()
    click.echo(f"✅ Removed {removed} cached entries")


if __name__ == '__main__':
    cli()
