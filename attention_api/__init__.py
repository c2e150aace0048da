"""
Attention Theater API

FastAPI server exposing the synthesis engine and playback controller to a
browser front end.
"""
