"""Serato Import package for bringing newly downloaded audio into a Serato DJ Pro library.

Scans a download folder for recently added files, keeps only the highest bitrate
copy of each track, and queues new tracks in a dated crate for waveform analysis.
"""

__all__ = ["importer"]
__version__ = "1.0.0"
__author__ = "RamC Venkatasamy"
