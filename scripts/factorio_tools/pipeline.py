"""
Loader pipeline coordinator.
Runs path discovery, the two script phases, sprite sheet generation and dataset
assembly strictly in sequence. Any failure aborts the run.
"""

import time
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field

from .config import LoaderConfig
from .errors import LoaderError, RawDataDumped
from .paths import find_game_dir, find_mod_dir
from .providers.resolver import IconSourceResolver
from .processing.atlas import AtlasBuilder, AtlasConfig
from .processing.assembler import DataAssembler
from .scripting.bundle import AssetBundle
from .scripting.host import ScriptHost, LoadRequest, ProcessRequest
from .scripting.lua import LuaScriptHost


class PipelineStep(Enum):
    """Enumeration of pipeline steps, in execution order."""
    LOCATE = "locate"
    LOAD = "load"
    PROCESS = "process"
    ATLAS = "atlas"
    ASSEMBLE = "assemble"


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: PipelineStep
    success: bool
    duration: float
    message: str
    errors: List[str] = field(default_factory=list)


@dataclass
class PipelineState:
    """State of one run."""
    current_step: Optional[PipelineStep] = None
    step_results: Dict[PipelineStep, StepResult] = field(default_factory=dict)
    start_time: Optional[float] = None
    game_dir: Optional[Path] = None
    mod_dir: Optional[Path] = None
    icon_count: int = 0
    archives_opened: int = 0


class PipelineError(LoaderError):
    """Raised when the pipeline cannot start."""

    def __init__(self, message: str, step: Optional[PipelineStep] = None):
        super().__init__(message, "pipeline")
        self.step = step


@dataclass(frozen=True)
class FactorioData:
    """Everything one run produces for the calculator."""
    # The JSON-encoded datasets for the normal and the expensive recipe modes.
    normal: str
    expensive: str
    # PNG-encoded sprite sheet.
    sprite_sheet: bytes
    # MD5 hex digest of sprite_sheet, as stored in the datasets.
    sprite_hash: str
    version: str


HostFactory = Callable[[LoaderConfig], ScriptHost]


class FactorioLoader:
    """
    Coordinates one loader run.

    Each call to load_data creates a fresh script host and a fresh icon
    resolver; nothing is shared between runs.
    """

    def __init__(self, config: LoaderConfig, host_factory: Optional[HostFactory] = None):
        """
        Args:
            config: Loader configuration
            host_factory: Builds the script host for a run; defaults to the Lua host
                over the configured bundle directories
        """
        self.config = config
        self.host_factory = host_factory or lua_host_factory
        self.state = PipelineState()
        self.logger = self._setup_logging()

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the loader."""
        logger = logging.getLogger("factorio_tools")
        logger.setLevel(logging.INFO if self.config.verbose else logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def load_data(self) -> FactorioData:
        """
        Run the whole pipeline.

        Returns:
            FactorioData for the located installation

        Raises:
            LoaderError: On any failure; nothing is returned partially
            RawDataDumped: When raw_file is configured, after data.raw was written
        """
        errors = self.config.validate()
        if errors:
            raise PipelineError("Invalid configuration: " + "; ".join(errors))

        self.state = PipelineState(start_time=time.time())
        self.logger.info("Starting loader run")

        with IconSourceResolver() as resolver:
            try:
                self._execute_step(PipelineStep.LOCATE, self._locate)
                host = self.host_factory(self.config)

                locales = self._execute_step(
                    PipelineStep.LOAD, host.load,
                    LoadRequest(self.state.game_dir, self.state.mod_dir, self.config.game_version),
                )
                if self.config.raw_file:
                    self._dump_raw_data(host)

                response = self._execute_step(
                    PipelineStep.PROCESS, host.process,
                    ProcessRequest(locales, self.config.verbose),
                )
                self.state.icon_count = response.icon_count

                builder = AtlasBuilder(AtlasConfig(compression_level=self.config.compression_level))
                atlas = self._execute_step(
                    PipelineStep.ATLAS, builder.build, response.icons, response.width, resolver
                )

                datasets = self._execute_step(
                    PipelineStep.ASSEMBLE, DataAssembler(host).assemble, response, atlas
                )
            finally:
                self.state.archives_opened = resolver.archives_opened

        self._log_execution_summary()

        return FactorioData(
            normal=datasets.normal,
            expensive=datasets.expensive,
            sprite_sheet=atlas.sprite_sheet,
            sprite_hash=atlas.sprite_hash,
            version=response.version,
        )

    def _locate(self) -> None:
        self.state.game_dir = find_game_dir(self.config.game_dir)
        self.state.mod_dir = find_mod_dir(self.config.mod_dir)
        self.logger.info(f"Game directory: {self.state.game_dir}")
        self.logger.info(f"Mod directory: {self.state.mod_dir}")

    def _dump_raw_data(self, host: ScriptHost) -> None:
        path = Path(self.config.raw_file)
        document = host.raw_data_json()
        try:
            path.write_text(document, encoding="utf-8")
        except OSError as e:
            raise PipelineError(f"Cannot write raw data to {path}: {e}", PipelineStep.LOAD) from e
        self.logger.info(f"Wrote unprocessed data.raw to {path}")
        raise RawDataDumped(str(path))

    def _execute_step(self, step: PipelineStep, handler: Callable, *args: Any) -> Any:
        """
        Execute a single pipeline step with timing.

        Failures are recorded and re-raised unchanged.
        """
        self.state.current_step = step
        self.logger.info(f"Executing step: {step.value}")

        start_time = time.time()

        try:
            result = handler(*args)
        except Exception as e:
            duration = time.time() - start_time
            self.state.step_results[step] = StepResult(
                step=step,
                success=False,
                duration=duration,
                message=f"Step {step.value} failed: {e}",
                errors=[str(e)],
            )
            self.logger.error(f"Step {step.value} failed after {duration:.2f}s: {e}")
            raise

        duration = time.time() - start_time
        self.state.step_results[step] = StepResult(
            step=step,
            success=True,
            duration=duration,
            message=f"Step {step.value} completed successfully",
        )
        self.logger.info(f"Step {step.value} completed in {duration:.2f}s")
        return result

    def _log_execution_summary(self):
        total_duration = time.time() - (self.state.start_time or time.time())

        self.logger.info("=" * 60)
        self.logger.info("LOADER RUN SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Total execution time: {total_duration:.2f}s")
        self.logger.info(f"Icons packed: {self.state.icon_count}")
        self.logger.info(f"Archives opened: {self.state.archives_opened}")
        for step, result in self.state.step_results.items():
            status = "✓" if result.success else "✗"
            self.logger.info(f"  {status} {step.value}: {result.duration:.2f}s")
        self.logger.info("=" * 60)


def lua_host_factory(config: LoaderConfig) -> ScriptHost:
    """Build the Lua host over the configured bundle directories."""
    return LuaScriptHost(
        loader_lib=AssetBundle(config.loader_lib_dir),
        process_data=AssetBundle(config.process_data_dir),
        verbose=config.verbose,
    )


def load_data(config: Optional[LoaderConfig] = None) -> FactorioData:
    """Run the loader once with the given (or default) configuration."""
    return FactorioLoader(config or LoaderConfig.default()).load_data()
