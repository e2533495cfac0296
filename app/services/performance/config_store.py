from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.models.performance import SCORING_CONFIG_KEY, ScoringConfig
from app.services.performance.errors import InvalidConfigError, NotFoundError
from app.services.performance.observability import SCORING_CONFIG_UPDATES
from app.services.performance.scoring import DEFAULT_WEIGHTS, WEIGHT_TOTAL, ScoringWeights

logger = logging.getLogger(__name__)

# Serializes check-then-write inside this process; the row lock covers other processes.
_WRITE_LOCK = threading.Lock()


@dataclass(frozen=True)
class WeightValidation:
    valid: bool
    total: int
    out_of_range: tuple[str, ...] = ()


class ScoringConfigStore:
    def validate(self, candidate: ScoringWeights) -> WeightValidation:
        total = candidate.total
        out_of_range = tuple(
            name for name, weight in candidate.as_dict().items() if not 0 <= weight <= WEIGHT_TOTAL
        )
        return WeightValidation(
            valid=total == WEIGHT_TOTAL and not out_of_range,
            total=total,
            out_of_range=out_of_range,
        )

    def get_active_config(self, db: Session) -> ScoringConfig:
        config = db.get(ScoringConfig, SCORING_CONFIG_KEY)
        if not config:
            raise NotFoundError("Scoring configuration has not been initialized")
        return config

    def initialize_defaults(self, db: Session) -> ScoringConfig:
        with _WRITE_LOCK:
            existing = self._locked_row(db)
            if existing:
                # Releases the row lock; nothing was changed.
                db.commit()
                return existing
            config = ScoringConfig(key=SCORING_CONFIG_KEY, updated_by="system", updated_at=datetime.now(UTC))
            self._apply(config, DEFAULT_WEIGHTS)
            db.add(config)
            db.commit()
            db.refresh(config)
        logger.info("scoring_config_initialized weights=%s", DEFAULT_WEIGHTS.as_dict())
        return config

    def set_config(self, db: Session, candidate: ScoringWeights, updated_by: str | None = None) -> ScoringConfig:
        result = self.validate(candidate)
        if not result.valid:
            logger.warning(
                "scoring_config_rejected total=%s out_of_range=%s by=%s",
                result.total,
                ",".join(result.out_of_range) or "-",
                updated_by,
            )
            SCORING_CONFIG_UPDATES.labels(status="rejected").inc()
            out_of_range = {name: getattr(candidate, name) for name in result.out_of_range}
            raise InvalidConfigError(result.total, out_of_range=out_of_range)

        with _WRITE_LOCK:
            try:
                config = self._locked_row(db)
                if not config:
                    config = ScoringConfig(key=SCORING_CONFIG_KEY)
                    db.add(config)
                self._apply(config, candidate)
                config.updated_by = updated_by or "system"
                config.updated_at = datetime.now(UTC)
                db.commit()
            except Exception:
                db.rollback()
                raise
            db.refresh(config)
        SCORING_CONFIG_UPDATES.labels(status="applied").inc()
        logger.info("scoring_config_updated weights=%s by=%s", candidate.as_dict(), config.updated_by)
        return config

    def snapshot(self, db: Session) -> ScoringWeights:
        """Weights for one report run, read once; initializes defaults if missing."""
        config = db.get(ScoringConfig, SCORING_CONFIG_KEY)
        if not config:
            config = self.initialize_defaults(db)
        return ScoringWeights.from_config(config)

    @staticmethod
    def _locked_row(db: Session) -> ScoringConfig | None:
        return (
            db.query(ScoringConfig)
            .filter(ScoringConfig.key == SCORING_CONFIG_KEY)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def _apply(config: ScoringConfig, weights: ScoringWeights) -> None:
        config.completion_weight = weights.completion_weight
        config.timeliness_weight = weights.timeliness_weight
        config.quality_weight = weights.quality_weight
        config.kra_alignment_weight = weights.kra_alignment_weight


scoring_config_store = ScoringConfigStore()
