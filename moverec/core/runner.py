"""Entry points that validate a snapshot and run the selected algorithms."""

from pydantic import ValidationError

from moverec.config.models import MoveRecConfig, load_config
from moverec.core.algorithms import ALGORITHMS, AlgorithmResult, ExecutionContext, Refactoring
from moverec.core.distance import DistanceFunction
from moverec.entities.search_result import EntitySearchResult
from moverec.exceptions import ConfigurationError, ConfigurationMismatch
from moverec.utils.logging_utils import get_logger
from moverec.utils.progress import CancellationToken, ProgressIndicator


class _ScaledIndicator(ProgressIndicator):
    """Maps one algorithm's [0, 1] progress into its slice of the whole run."""

    def __init__(self, parent: ProgressIndicator, offset: float, span: float):
        self.parent = parent
        self.offset = offset
        self.span = span

    def check_canceled(self) -> None:
        self.parent.check_canceled()

    def report_progress(self, fraction: float) -> None:
        self.parent.report_progress(self.offset + self.span * fraction)


class RefactoringRunner:
    """Runs the configured algorithms over entity snapshots."""

    def __init__(
        self,
        config: MoveRecConfig | None = None,
        config_file: str | None = None,
        config_overrides: dict | None = None,
    ):
        """
        Initialize runner.

        Args:
            config: Ready configuration (takes precedence over config_file)
            config_file: Path to a YAML configuration file
            config_overrides: Nested overrides applied on top of the configuration
        """
        self.logger = get_logger(self.__class__.__name__)

        if config is None:
            config = load_config(config_file) if config_file else MoveRecConfig()

        if config_overrides:
            merged = config.model_dump()
            self._apply_overrides(merged, config_overrides)
            try:
                config = MoveRecConfig(**merged)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid configuration override: {e}") from e

        self.config = config

    def _apply_overrides(self, config: dict, overrides: dict):
        """Recursively apply configuration overrides."""
        for key, value in overrides.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                self._apply_overrides(config[key], value)
            else:
                config[key] = value

    def validate_schema(self, snapshot: EntitySearchResult) -> None:
        """
        Raises:
            ConfigurationMismatch: If the snapshot's metrics differ from the configured ones
        """
        expected = self.config.metrics
        if expected is not None and list(snapshot.metric_names) != list(expected):
            raise ConfigurationMismatch(
                f"Snapshot metrics {list(snapshot.metric_names)} do not match "
                f"configured metrics {list(expected)}",
                expected=expected,
                actual=snapshot.metric_names,
            )

    def build_context(
        self, snapshot: EntitySearchResult, indicator: ProgressIndicator
    ) -> ExecutionContext:
        distance_config = self.config.distance
        distance = DistanceFunction.fit(
            snapshot,
            normalization=distance_config.normalization,
            feature_weight=distance_config.feature_weight,
            relation_weight=distance_config.relation_weight,
        )
        return ExecutionContext(
            snapshot=snapshot, config=self.config, indicator=indicator, distance=distance
        )

    def run(
        self,
        snapshot: EntitySearchResult,
        indicator: ProgressIndicator | None = None,
        algorithms: list[str] | None = None,
    ) -> list[AlgorithmResult]:
        """
        Run every selected algorithm, in order.

        Args:
            snapshot: Entities of this analysis run
            indicator: Progress sink and cancellation source
            algorithms: Algorithm names (defaults to the configured ones)

        Returns:
            One AlgorithmResult per algorithm

        Raises:
            ConfigurationMismatch: If the snapshot's metric schema is unexpected
            OperationCanceled: If the run was canceled; no partial results are returned
        """
        indicator = indicator or CancellationToken()
        names = [n.upper() for n in (algorithms or self.config.algorithms)]
        unknown = [n for n in names if n not in ALGORITHMS]
        if unknown:
            raise ConfigurationError(f"Unknown algorithms: {unknown}")

        self.validate_schema(snapshot)
        indicator.check_canceled()

        self.logger.info(f"Starting run with {len(names)} algorithms: {', '.join(names)}")
        results = []
        span = 1.0 / len(names)
        for position, name in enumerate(names):
            scaled = _ScaledIndicator(indicator, position * span, span)
            context = self.build_context(snapshot, scaled)
            results.append(ALGORITHMS[name]().execute(context))
        indicator.report_progress(1.0)
        return results


def run_all(
    entities: EntitySearchResult,
    config: MoveRecConfig | None = None,
    indicator: ProgressIndicator | None = None,
) -> list[AlgorithmResult]:
    """Run every configured algorithm over ``entities``."""
    return RefactoringRunner(config).run(entities, indicator)


def run(
    entities: EntitySearchResult,
    config: MoveRecConfig | None = None,
    indicator: ProgressIndicator | None = None,
    algorithm: str | None = None,
) -> dict[str, Refactoring]:
    """
    Run one algorithm and return entity name -> refactoring.

    Args:
        entities: Entities of this analysis run
        config: Configuration (defaults apply when omitted)
        indicator: Progress sink and cancellation source
        algorithm: Algorithm name; defaults to the first configured algorithm

    Raises:
        ConfigurationMismatch: If the snapshot's metric schema is unexpected
        OperationCanceled: If the run was canceled
    """
    runner = RefactoringRunner(config)
    name = algorithm or runner.config.algorithms[0]
    (result,) = runner.run(entities, indicator, algorithms=[name])
    return result.as_mapping()
