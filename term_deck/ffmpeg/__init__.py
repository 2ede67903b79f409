"""FFmpeg subprocess helpers for export.

Modules:
- runner: binary discovery, subprocess execution and error reporting
- progress: single-line console progress bar
"""
