"""
ID3 tag writing for downloaded audio

This module embeds catalog metadata into MP3 payloads, either a file on disk
(tagged in place) or an in-memory buffer (tagged copy returned).

Frames written:
- TIT2: track title
- TPE1: all contributors
- TALB: album name
- TDRC: release year
- TRCK / TPOS: track and disc number
- APIC: album artwork, front cover (optional)

Album Artwork:
Artwork is downloaded with requests from the cover URL on the track record
and normalized with Pillow (RGB, at most 1000x1000, JPEG quality 90). Artwork
is optional: download or processing problems are logged and the remaining
frames are still written.

Tagging errors raised by mutagen surface as TagWriteError.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import requests
from PIL import Image
from mutagen import MutagenError
from mutagen.id3 import ID3, ID3NoHeaderError, TIT2, TPE1, TALB, TDRC, TRCK, TPOS, APIC

from ..config.settings import get_settings
from ..core.exceptions import TagWriteError
from ..spotify.models import TrackDetails
from ..utils.logger import get_logger


class MetadataManager:
    """
    Writes ID3 tags describing a TrackDetails record

    Existing ID3 frames are replaced; a payload without an ID3 header gets a
    fresh one.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        """
        Initialize metadata manager with configuration and network setup

        Args:
            session: HTTP session used for artwork downloads
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.include_album_art = self.settings.metadata.include_album_art
        self.id3_version = self.settings.metadata.id3_version

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.settings.network.user_agent
        })

    def write_tags(self, track: TrackDetails, target: Union[str, Path, bytes]) -> Union[str, bytes]:
        """
        Embed track metadata into target

        Args:
            track: Catalog record describing the audio
            target: Path of an MP3 file, or the MP3 payload itself

        Returns:
            The same path for file targets, the tagged payload for bytes

        Raises:
            TagWriteError: If the tags cannot be read or saved
        """
        if isinstance(target, (bytes, bytearray)):
            buffer = BytesIO(bytes(target))
            self._embed_mp3_metadata(buffer, track)
            return buffer.getvalue()

        file_path = Path(target)
        if not file_path.exists():
            raise TagWriteError(f"Audio file not found: {file_path}", details={'file_path': str(file_path)})

        self._embed_mp3_metadata(str(file_path), track)
        self.logger.debug(f"MP3 metadata embedded: {file_path.name}")
        return str(target)

    def _embed_mp3_metadata(self, filething: Union[str, BytesIO], track: TrackDetails) -> None:
        """
        Build the ID3 frames for track and save them into filething

        Args:
            filething: File path or seekable buffer holding the MP3 payload
            track: Catalog record
        """
        try:
            try:
                tags = ID3(filething)
            except ID3NoHeaderError:
                tags = ID3()

            tags.clear()

            tags.add(TIT2(encoding=3, text=track.name))
            if track.artists:
                tags.add(TPE1(encoding=3, text=track.artists))
            if track.album_name:
                tags.add(TALB(encoding=3, text=track.album_name))

            # Release year from YYYY, YYYY-MM or YYYY-MM-DD
            if track.release_date:
                tags.add(TDRC(encoding=3, text=track.release_date[:4]))

            if track.track_number:
                tags.add(TRCK(encoding=3, text=str(track.track_number)))
            if track.disc_number > 1:
                tags.add(TPOS(encoding=3, text=str(track.disc_number)))

            if self.include_album_art:
                album_art = self._download_album_art(track.cover_url)
                if album_art:
                    tags.add(APIC(
                        encoding=3,
                        mime='image/jpeg',
                        type=3,  # Cover (front)
                        desc='Cover',
                        data=album_art
                    ))

            v2_version = 4
            if self.id3_version == "2.3":
                # TDRC and other v2.4 frames have to be converted first
                tags.update_to_v23()
                v2_version = 3

            if isinstance(filething, BytesIO):
                filething.seek(0)
            tags.save(filething, v2_version=v2_version)

        except (MutagenError, OSError) as e:
            raise TagWriteError(
                f"Failed to embed metadata for '{track.name}': {e}",
                details={'track_id': track.id, 'original_error': str(e)}
            ) from e

    def _download_album_art(self, image_url: Optional[str]) -> Optional[bytes]:
        """
        Download and normalize album artwork

        Args:
            image_url: Artwork URL from the catalog

        Returns:
            JPEG bytes, the original bytes if Pillow cannot process them,
            or None if the download failed
        """
        if not image_url:
            return None

        try:
            response = self.session.get(image_url, timeout=self.settings.network.request_timeout)
            response.raise_for_status()
            image_data = response.content
        except requests.RequestException as e:
            self.logger.warning(f"Failed to download album art from {image_url}: {e}")
            return None

        try:
            with Image.open(BytesIO(image_data)) as img:
                if img.mode != 'RGB':
                    img = img.convert('RGB')

                if img.width > 1000 or img.height > 1000:
                    img.thumbnail((1000, 1000), Image.Resampling.LANCZOS)

                output = BytesIO()
                img.save(output, format='JPEG', quality=90, optimize=True)
                return output.getvalue()
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to process album art image: {e}")
            return image_data
