"""ClipFlow — non-destructive edit planning and rendering on top of FFmpeg."""

__version__ = "0.1.0"
