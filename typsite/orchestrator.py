"""Build pipeline orchestration: content/ -> out/."""

from __future__ import annotations

import logging
from pathlib import Path

from .compiler import Compiler, CompilerAdapter
from .config import ConfigError, SiteConfig, load_config
from .errors import IoError, TypsiteError
from .logging import get_logger
from .models import BuildFailure, BuildReport, BuildTarget
from .paths import build_target, discover_sources
from .postproc.inject import HeadInjector
from .writer import copy_tree, reset_dir, write_text


class Orchestrator:
    """Runs full build passes.

    A pass never raises. Errors preparing the output directory end the pass
    with a single failure; errors on individual files are recorded and the
    remaining files are still built.
    """

    def __init__(
        self,
        compiler: Compiler | None = None,
        injector: HeadInjector | None = None,
    ) -> None:
        self.adapter = CompilerAdapter(compiler)
        self.injector = injector or HeadInjector()
        self.logger = get_logger("orchestrator")

    def build(self, root: Path, dev_mode: bool = False) -> BuildReport:
        """Regenerate the whole output tree for the project at ``root``."""
        root = Path(root).expanduser().resolve()
        self.logger.info("building site...")

        try:
            config = load_config(root)
        except ConfigError as exc:
            self.logger.error("%s", exc)
            return BuildReport(failures=[BuildFailure(root, exc)])

        out_dir = config.output_path
        try:
            reset_dir(out_dir)
        except IoError as exc:
            self.logger.error("%s", exc)
            return BuildReport(failures=[BuildFailure(out_dir, exc)])

        self._copy_static(config)

        sources = discover_sources(config.content_path, config.source_extension)
        if not sources:
            self.logger.info(
                "no .%s files found in %s/", config.source_extension, config.content_dir
            )
            return BuildReport()

        report = BuildReport()
        for source in sources:
            target = build_target(source, out_dir)
            self.logger.info(
                "  %s -> %s",
                source.relative.as_posix(),
                target.output.relative_to(out_dir).as_posix(),
            )
            try:
                self._build_target(root, target, dev_mode)
            except TypsiteError as exc:
                self.logger.error("%s", exc)
                report.failures.append(BuildFailure(source.path, exc))
            except Exception as exc:
                self._log_exception(f"Unexpected error building {source.path}", exc)
                report.failures.append(BuildFailure(source.path, exc))
            else:
                report.successes.append(target.output)

        if report.ok:
            self.logger.info("done! output in %s/", config.output_dir)
        else:
            self.logger.warning("build completed with %d error(s)", len(report.failures))
        return report

    def _build_target(self, root: Path, target: BuildTarget, dev_mode: bool) -> None:
        html = self.adapter.compile_file(target.source.path, root)
        write_text(target.output, html)
        self.injector.inject_file(target.output, dev_mode=dev_mode)

    def _copy_static(self, config: SiteConfig) -> None:
        static_dir = config.static_path
        if not static_dir.is_dir():
            return
        try:
            copied = copy_tree(static_dir, config.output_path)
        except IoError as exc:
            self.logger.error("%s", exc)
            return
        self.logger.info("copied %d static file(s)", len(copied))

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["Orchestrator"]
