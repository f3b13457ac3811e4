"""Standalone websocket relay that republishes a live feed through ffmpeg."""
