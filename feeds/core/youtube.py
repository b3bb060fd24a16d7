"""YouTube strategy: download captions with yt-dlp and turn them into text.

Each download runs in its own temporary directory with artifacts named by
video ID, so concurrent extractions never see each other's files.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from feeds.core.strategies import ExtractionStrategy
from feeds.core.transcript import captions_to_text
from feeds.providers.content_types import ContentKind, YouTubeResult

logger = logging.getLogger(__name__)

VIDEO_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)([A-Za-z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/([A-Za-z0-9_-]{11})"),
)

DEFAULT_LANGUAGES = ("en", "no")
CAPTION_TIMEOUT = 60.0  # seconds
CAPTION_MAX_OUTPUT = 1024 * 1024  # bytes of stdout/stderr kept from yt-dlp
_READ_CHUNK = 64 * 1024

NO_VIDEO_ID_ERROR = "Could not find a video ID in the URL"
NO_TRANSCRIPT_ERROR = "No transcript available for this video"


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video ID of a YouTube URL, or None."""
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


class CaptionDownloadError(Exception):
    """yt-dlp failed, timed out or produced too much output."""


def _remove_quietly(path: str) -> None:
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.debug(f"Could not remove caption workdir {path}: {e}")


class CaptionDownloader:
    """Runs yt-dlp to fetch a video's WebVTT captions."""

    def __init__(
        self,
        ytdlp_bin: str = "yt-dlp",
        languages: tuple[str, ...] = DEFAULT_LANGUAGES,
        timeout: float = CAPTION_TIMEOUT,
        max_output: int = CAPTION_MAX_OUTPUT,
    ) -> None:
        self._bin = ytdlp_bin
        self._languages = languages
        self._timeout = timeout
        self._max_output = max_output

    def build_command(self, video_id: str, workdir: str) -> list[str]:
        return [
            self._bin,
            "--skip-download",
            "--write-subs",
            "--write-auto-subs",
            "--sub-langs",
            ",".join(self._languages),
            "--sub-format",
            "vtt",
            "--no-warnings",
            "--output",
            os.path.join(workdir, f"{video_id}.%(ext)s"),
            f"https://www.youtube.com/watch?v={video_id}",
        ]

    async def _read_capped(self, stream: asyncio.StreamReader) -> bytes:
        buffer = bytearray()
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                return bytes(buffer)
            buffer.extend(chunk)
            if len(buffer) > self._max_output:
                raise CaptionDownloadError(
                    f"Caption tool output exceeded {self._max_output} bytes"
                )

    async def _run(self, command: list[str]) -> None:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr, returncode = await asyncio.wait_for(
                asyncio.gather(
                    self._read_capped(proc.stdout),
                    self._read_capped(proc.stderr),
                    proc.wait(),
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise CaptionDownloadError(
                f"Caption download timed out after {self._timeout:.0f}s"
            ) from None
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass  # already exited
                await proc.wait()

        if returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip().splitlines()
            message = detail[-1] if detail else f"exit code {returncode}"
            raise CaptionDownloadError(message)

    def _find_caption_file(self, workdir: str, video_id: str) -> Path | None:
        files = sorted(Path(workdir).glob(f"{video_id}*.vtt"))
        if not files:
            return None
        # Prefer the configured language order
        for lang in self._languages:
            for path in files:
                if path.name.startswith(f"{video_id}.{lang}"):
                    return path
        return files[0]

    async def download(self, video_id: str) -> str | None:
        """Return the caption document for a video, or None if it has none.

        The temporary directory is removed whether or not reading succeeds.

        Raises:
            CaptionDownloadError: If yt-dlp fails, times out or floods output.
            OSError: If yt-dlp cannot be started or the file cannot be read.
        """
        workdir = tempfile.mkdtemp(prefix=f"captions-{video_id}-")
        try:
            await self._run(self.build_command(video_id, workdir))
            path = self._find_caption_file(workdir, video_id)
            if path is None:
                logger.info(f"No captions found for video {video_id}")
                return None
            return path.read_text(encoding="utf-8", errors="ignore")
        finally:
            _remove_quietly(workdir)


class YouTubeTranscriptFetcher(ExtractionStrategy):
    """Extracts the spoken-word transcript of a YouTube video."""

    def __init__(self, downloader: CaptionDownloader | None = None) -> None:
        self._downloader = downloader or CaptionDownloader()

    @property
    def kind(self) -> ContentKind:
        return ContentKind.YOUTUBE

    async def extract(self, url: str, title: str | None = None) -> YouTubeResult:
        video_id = extract_video_id(url)
        if not video_id:
            return YouTubeResult(title=title, error=NO_VIDEO_ID_ERROR)

        try:
            document = await self._downloader.download(video_id)
            text = captions_to_text(document) if document else ""
        except (CaptionDownloadError, OSError) as e:
            logger.warning(f"Caption download failed for {video_id}: {e}")
            return YouTubeResult(title=title, error=f"Could not fetch transcript: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error fetching captions for {video_id}")
            return YouTubeResult(
                title=title,
                error=f"Could not fetch transcript: {type(e).__name__}: {e}",
            )

        if not text:
            return YouTubeResult(title=title, error=NO_TRANSCRIPT_ERROR)

        return YouTubeResult(text=text, title=title)
