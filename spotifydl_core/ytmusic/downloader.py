"""
Audio download from YouTube via yt-dlp

Given a media reference (a YouTube watch URL), this module downloads the best
available audio stream and converts it to MP3 with FFmpeg, either to a
caller-chosen path or to memory.

Download Process:
1. Build yt-dlp options: best audio format, FFmpegExtractAudio to mp3 at the
   configured bitrate, all console output suppressed
2. Download to a random stem inside the configured temp directory; the
   postprocessor leaves '<stem>.mp3' behind
3. Move the converted file to the caller's destination, or read it into
   memory and delete it

A failed download only removes files under its own random stem, never
anything next to the caller's destination.

FFmpeg must be installed and on PATH for the conversion step.
"""

import glob
import shutil
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Union

import yt_dlp

from ..config.settings import get_settings
from ..core.exceptions import FetchError
from ..utils.logger import get_logger
from ..utils.helpers import ensure_directory, format_file_size, remove_file_quietly


class YouTubeMusicDownloader:
    """
    Downloads audio for a media reference to disk or memory

    Errors from yt-dlp, FFmpeg and the filesystem are raised as FetchError.
    Partially written files are removed before the error propagates.
    """

    def __init__(self):
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.audio_format = self.settings.download.audio_format
        self.bitrate = self.settings.download.bitrate
        self.timeout = self.settings.network.request_timeout

    def _get_ydl_options(self, output_template: str) -> Dict[str, Any]:
        """
        Generate yt-dlp options for audio extraction

        Args:
            output_template: yt-dlp 'outtmpl' value

        Returns:
            Dictionary of yt-dlp options
        """
        options = {
            'format': 'bestaudio/best',
            'outtmpl': output_template,
            'noplaylist': True,

            # Complete output suppression
            'quiet': True,
            'no_warnings': True,
            'noprogress': True,

            'socket_timeout': self.timeout,
            'overwrites': True,
            'postprocessors': [{
                'key': 'FFmpegExtractAudio',
                'preferredcodec': self.audio_format,
                'preferredquality': str(self.bitrate),
            }],
        }

        ffmpeg_location = shutil.which('ffmpeg')
        if ffmpeg_location:
            options['ffmpeg_location'] = ffmpeg_location

        return options

    def _final_path(self, destination: Union[str, Path]) -> Path:
        """Path the converted file ends up at for a given destination"""
        destination = Path(destination)
        suffix = f".{self.audio_format}"
        if destination.suffix.lower() == suffix:
            return destination
        return destination.with_name(destination.name + suffix)

    def _download_to_temp(self, reference: str) -> Path:
        """
        Download and convert reference into the private temp directory

        Every download gets its own random stem, so cleanup after a failure
        only ever touches files this call created.

        Returns:
            Path of the converted audio file inside the temp directory

        Raises:
            FetchError: If the download or conversion fails
        """
        temp_dir = self.settings.get_temp_directory()
        stem = uuid.uuid4().hex
        converted_path = temp_dir / f"{stem}.{self.audio_format}"

        # yt-dlp expands '%' sequences anywhere in the template
        output_template = str(temp_dir / stem).replace('%', '%%') + '.%(ext)s'

        try:
            with yt_dlp.YoutubeDL(self._get_ydl_options(output_template)) as ydl:
                ydl.download([reference])
        except yt_dlp.utils.DownloadError as e:
            self._cleanup_partial_downloads(temp_dir, stem)
            raise FetchError(
                f"Failed to download audio from {reference}: {e}",
                details={'reference': reference}
            ) from e

        if not converted_path.exists():
            self._cleanup_partial_downloads(temp_dir, stem)
            raise FetchError(
                f"Converted audio not found at {converted_path}",
                details={'reference': reference}
            )

        return converted_path

    def fetch_to_path(self, reference: str, destination: Union[str, Path]) -> str:
        """
        Download the audio for reference and save it at destination

        The audio extension is appended when destination does not already end
        with it. Nothing is written next to destination until the converted
        file is complete.

        Args:
            reference: YouTube watch URL
            destination: Target file path

        Returns:
            Path of the saved audio file

        Raises:
            FetchError: If the download, conversion or final move fails
        """
        start_time = time.time()
        final_path = self._final_path(destination)
        converted_path = self._download_to_temp(reference)

        try:
            ensure_directory(final_path.parent)
            shutil.move(str(converted_path), str(final_path))
        except OSError as e:
            remove_file_quietly(converted_path)
            raise FetchError(
                f"Failed to move downloaded audio to {final_path}: {e}",
                details={'reference': reference, 'destination': str(final_path)}
            ) from e

        file_size = final_path.stat().st_size
        self.logger.debug(
            f"Download completed: {reference} -> {final_path.name} "
            f"({format_file_size(file_size)}, {time.time() - start_time:.1f}s)"
        )
        return str(final_path)

    def fetch_to_memory(self, reference: str) -> bytes:
        """
        Download the audio for reference and return its bytes

        Args:
            reference: YouTube watch URL

        Returns:
            Encoded audio payload

        Raises:
            FetchError: If the download or conversion fails
        """
        converted_path = self._download_to_temp(reference)
        try:
            return converted_path.read_bytes()
        except OSError as e:
            raise FetchError(f"Failed to read downloaded audio {converted_path}: {e}") from e
        finally:
            remove_file_quietly(converted_path)

    def _cleanup_partial_downloads(self, temp_dir: Path, stem: str) -> None:
        """
        Remove leftovers of a failed download from the temp directory

        Matches '<stem>.*' so both the raw stream and partial conversions go.
        """
        for file_path in temp_dir.glob(f"{glob.escape(stem)}.*"):
            if file_path.is_file() and remove_file_quietly(file_path):
                self.logger.debug(f"Cleaned up partial file: {file_path.name}")
