"""loudconcat — batch loudness normalization and concatenation of video files."""

__version__ = "0.1.0"
