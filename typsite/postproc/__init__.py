"""Post-processing applied to generated HTML."""

from .inject import HEAD_BLOCK, RELOAD_SCRIPT, RELOAD_STREAM_PATH, HeadInjector

__all__ = ["HEAD_BLOCK", "HeadInjector", "RELOAD_SCRIPT", "RELOAD_STREAM_PATH"]
