"""
Bitrate Probing Service

Bitrate is the only quality signal used for deduplication. Two probes are
provided: one shelling out to ffprobe (the default) and one reading the
stream info through mutagen.
"""

import subprocess
from typing import Optional, Protocol, runtime_checkable

from mutagen import File as MutagenFile
from mutagen import MutagenError

from ..core.exceptions import BitrateProbeError
from ..utils.audio import parse_bitrate
from ..utils.logging_config import get_logger


@runtime_checkable
class BitrateProber(Protocol):
    """Capability: path -> audio bitrate in kbps"""

    def probe(self, filepath: str) -> int:
        ...


class FFprobeBitrateProber:
    """Reads the bitrate of the first audio stream with ffprobe"""

    def __init__(self, executable: str = 'ffprobe', timeout: Optional[int] = 60):
        self.executable = executable
        self.timeout = timeout
        self.logger = get_logger('probe')

    def build_command(self, filepath: str):
        return [
            self.executable, '-v', 'error',
            '-select_streams', 'a:0',
            '-show_entries', 'stream=bit_rate',
            '-of', 'csv=p=0',
            filepath,
        ]

    def probe(self, filepath: str) -> int:
        """
        Probe a file's bitrate

        Raises:
            BitrateProbeError: If ffprobe fails or reports no usable bitrate
        """
        try:
            completed = subprocess.run(
                self.build_command(filepath),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise BitrateProbeError(
                f"Could not run {self.executable}",
                details=str(e),
                filepath=filepath
            )

        if completed.returncode != 0:
            raise BitrateProbeError(
                f"{self.executable} exited with status {completed.returncode}",
                details=completed.stderr.strip(),
                filepath=filepath
            )

        kbps = parse_bitrate(completed.stdout, unit='bps', filepath=filepath)
        self.logger.debug(f"ffprobe: {kbps} kbps for {filepath}")
        return kbps


class MutagenBitrateProber:
    """Reads the bitrate from the stream info parsed by mutagen"""

    def __init__(self):
        self.logger = get_logger('probe')

    def probe(self, filepath: str) -> int:
        """
        Raises:
            BitrateProbeError: If the file cannot be parsed or has no bitrate
        """
        try:
            audio_file = MutagenFile(filepath)
        except (MutagenError, OSError) as e:
            raise BitrateProbeError(
                "Could not read audio file",
                details=str(e),
                filepath=filepath
            )

        if audio_file is None or getattr(audio_file, 'info', None) is None:
            raise BitrateProbeError("Unrecognized audio file", filepath=filepath)

        kbps = parse_bitrate(getattr(audio_file.info, 'bitrate', None), unit='bps', filepath=filepath)
        self.logger.debug(f"mutagen: {kbps} kbps for {filepath}")
        return kbps


def create_prober(name: str, timeout: Optional[int] = 60) -> BitrateProber:
    """Build a prober by name"""
    if name == 'ffprobe':
        return FFprobeBitrateProber(timeout=timeout)
    if name == 'mutagen':
        return MutagenBitrateProber()
    raise ValueError(f"Unknown bitrate prober: {name}")
