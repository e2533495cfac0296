from app.tasks.performance import generate_weekly_reports, rollover_kpis

__all__ = ["generate_weekly_reports", "rollover_kpis"]
