"""Audio file helpers built on ffmpeg."""
