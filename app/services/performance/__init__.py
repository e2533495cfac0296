from app.services.performance.config_store import scoring_config_store
from app.services.performance.kpis import kpi_tracker
from app.services.performance.reports import weekly_reports
from app.services.performance.scoring import score_calculator

__all__ = ["kpi_tracker", "score_calculator", "scoring_config_store", "weekly_reports"]
