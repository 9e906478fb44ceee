"""
Metadata Tagging Service

Appends marker words (e.g. "serato-cues") to a track's comment tag. The
default tagger shells out to exiftool; a mutagen based tagger is available
for systems without exiftool.
"""

import subprocess
from typing import Optional, Protocol, runtime_checkable

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.id3 import COMM, ID3FileType
from mutagen.mp4 import MP4

from ..core.exceptions import TaggingError
from ..utils.logging_config import get_logger


@runtime_checkable
class MetadataTagger(Protocol):
    """Capability: add a tag marker to a file's comment"""

    def add_tag(self, filepath: str, tag: str) -> None:
        ...


class ExifToolTagger:
    """Appends to the Comment tag with exiftool, overwriting the original file"""

    def __init__(self, executable: str = 'exiftool', timeout: Optional[int] = 60):
        self.executable = executable
        self.timeout = timeout
        self.logger = get_logger('tagging')

    def build_command(self, filepath: str, tag: str):
        return [self.executable, '-overwrite_original', f'-Comment+= {tag}', filepath]

    def add_tag(self, filepath: str, tag: str) -> None:
        """
        Raises:
            TaggingError: If exiftool cannot be run or reports failure
        """
        try:
            completed = subprocess.run(
                self.build_command(filepath, tag),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TaggingError(
                f"Could not run {self.executable}",
                details=str(e),
                filepath=filepath
            )

        if completed.returncode != 0:
            raise TaggingError(
                f"{self.executable} failed to add tag '{tag}'",
                details=completed.stderr.strip(),
                filepath=filepath
            )

        self.logger.debug(f"exiftool: tagged {filepath} with {tag}")


class MutagenCommentTagger:
    """Appends tag markers to the comment field using mutagen"""

    MP4_COMMENT = '\xa9cmt'

    def __init__(self):
        self.logger = get_logger('tagging')

    def add_tag(self, filepath: str, tag: str) -> None:
        """
        Append a marker to the comment unless it is already present

        Raises:
            TaggingError: If the file cannot be read or saved
        """
        try:
            audio_file = MutagenFile(filepath)
            if audio_file is None:
                raise TaggingError("Unrecognized audio file", filepath=filepath)

            if audio_file.tags is None:
                audio_file.add_tags()

            if isinstance(audio_file, MP4):
                changed = self._update_mp4(audio_file, tag)
            elif isinstance(audio_file, ID3FileType):
                changed = self._update_id3(audio_file, tag)
            else:
                changed = self._update_generic(audio_file, tag)

            if changed:
                audio_file.save()
                self.logger.debug(f"mutagen: tagged {filepath} with {tag}")
            else:
                self.logger.debug(f"mutagen: {filepath} already tagged with {tag}")

        except (MutagenError, OSError, ValueError, KeyError) as e:
            raise TaggingError(
                f"Failed to add tag '{tag}'",
                details=str(e),
                filepath=filepath
            )

    @staticmethod
    def _append(comment: str, tag: str) -> Optional[str]:
        """New comment text, or None when the tag is already there"""
        if tag in comment.split():
            return None
        return f"{comment} {tag}".strip()

    def _update_mp4(self, audio_file, tag: str) -> bool:
        current = audio_file.tags.get(self.MP4_COMMENT, [''])
        updated = self._append(current[0] if current else '', tag)
        if updated is None:
            return False
        audio_file.tags[self.MP4_COMMENT] = [updated]
        return True

    def _update_id3(self, audio_file, tag: str) -> bool:
        frames = audio_file.tags.getall('COMM')
        current = str(frames[0].text[0]) if frames and frames[0].text else ''
        updated = self._append(current, tag)
        if updated is None:
            return False
        audio_file.tags.delall('COMM')
        audio_file.tags.add(COMM(encoding=3, lang='eng', desc='', text=[updated]))
        return True

    def _update_generic(self, audio_file, tag: str) -> bool:
        current = audio_file.tags.get('comment', [''])
        updated = self._append(current[0] if current else '', tag)
        if updated is None:
            return False
        audio_file.tags['comment'] = [updated]
        return True


def create_tagger(name: str, timeout: Optional[int] = 60) -> MetadataTagger:
    """Build a tagger by name"""
    if name == 'exiftool':
        return ExifToolTagger(timeout=timeout)
    if name == 'mutagen':
        return MutagenCommentTagger()
    raise ValueError(f"Unknown metadata tagger: {name}")
