"""Head metadata and live-reload injection for generated HTML."""

from __future__ import annotations

from pathlib import Path

from ..errors import IoError

RELOAD_STREAM_PATH = "/__reload_stream"

HEAD_BLOCK = """
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<link rel="stylesheet" href="/style.css">
<link rel="icon" href="/favicon.ico">
"""

RELOAD_SCRIPT = """
<script>
(function() {
  function connect() {
    var es = new EventSource('%s');
    es.onmessage = function(e) {
      if (e.data === 'reload') window.location.reload();
    };
    es.onerror = function() {
      es.close();
      setTimeout(connect, 1000);
    };
  }
  connect();
})();
</script>
""" % RELOAD_STREAM_PATH


class HeadInjector:
    """Inserts the metadata block after the first ``<head>`` tag.

    Matching is a plain substring search for ``<head>`` then ``<HEAD>``, so a
    literal tag inside earlier text receives the block instead of the real head.
    """

    HEAD_TAGS = ("<head>", "<HEAD>")

    def block(self, dev_mode: bool) -> str:
        if dev_mode:
            return HEAD_BLOCK + RELOAD_SCRIPT
        return HEAD_BLOCK

    def inject(self, html: str, *, dev_mode: bool = False) -> str:
        injection = self.block(dev_mode)
        for tag in self.HEAD_TAGS:
            if tag in html:
                return html.replace(tag, f"{tag}{injection}", 1)
        return (
            '<!DOCTYPE html><html lang="en">'
            f"<head>{injection}</head><body>{html}</body></html>"
        )

    def inject_file(self, path: Path, *, dev_mode: bool = False) -> None:
        """Rewrite the HTML file at ``path`` in place."""
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoError(path, exc) from exc
        try:
            path.write_text(self.inject(content, dev_mode=dev_mode), encoding="utf-8")
        except OSError as exc:
            raise IoError(path, exc) from exc


__all__ = ["HEAD_BLOCK", "HeadInjector", "RELOAD_SCRIPT", "RELOAD_STREAM_PATH"]
