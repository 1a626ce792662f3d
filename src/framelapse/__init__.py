"""framelapse: sample frames from batches of videos and re-encode them as time-lapses."""

__version__ = "0.1.0"
