from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from .catalog import MONTHS, TASKS
from .period import Period, in_range
from .store import ProductivityStore, task_points, total_effort, total_points
from .types import Settings


@dataclass
class ReportRow:
    index: int
    task_id: int
    name: str
    monthly: Dict[str, int]
    effort: int
    unit_value: Decimal
    points: Decimal


@dataclass
class ReportSummary:
    total_effort: int
    total_points: Decimal
    target_points: Decimal
    percentage: Decimal


@dataclass
class Report:
    title: str
    period_label: str
    generated_at: datetime
    months: List[str]
    rows: List[ReportRow] = field(default_factory=list)
    summary: Optional[ReportSummary] = None

    @property
    def headers(self) -> List[str]:
        return ["#", "Atividade"] + [m.upper() for m in self.months] + ["Esforço", "Vr Unit", "Pontos"]


def relevant_months(active_year: int, settings: Settings) -> List[str]:
    """Mois de l'année active à afficher; janvier 2026 précède le début du suivi."""
    months: List[str] = []
    for month in MONTHS:
        if active_year == 2026 and month == "jan":
            continue
        period = Period(active_year, month)
        if settings.is_filter_active and not in_range(period, settings.filter_start, settings.filter_end):
            continue
        months.append(month)
    return months


def period_label(active_year: int, settings: Settings) -> str:
    if settings.is_filter_active:
        return f"Período: {settings.filter_start} até {settings.filter_end}"
    return f"Relatório Geral - Ano {active_year}"


def build_report(
    store: ProductivityStore,
    settings: Settings,
    active_year: int,
    totals: Optional[Mapping[int, int]] = None,
    now: Optional[datetime] = None,
) -> Report:
    if totals is None:
        totals = store.totals(settings.is_filter_active, settings.filter_start, settings.filter_end)
    months = relevant_months(active_year, settings)

    report = Report(
        title=f"Relatório de Produtividade - {settings.server_name or 'Servidor não identificado'}",
        period_label=period_label(active_year, settings),
        generated_at=now or datetime.now(),
        months=months,
    )
    for idx, task in enumerate(TASKS, start=1):
        report.rows.append(
            ReportRow(
                index=idx,
                task_id=task.id,
                name=task.name,
                monthly={m: store.get_count(Period(active_year, m), task.id) for m in months},
                effort=totals.get(task.id, 0),
                unit_value=task.unit_value,
                points=task_points(totals, task.id),
            )
        )

    points = total_points(totals)
    target = settings.daily_effort_goal * settings.days_worked
    report.summary = ReportSummary(
        total_effort=total_effort(totals),
        total_points=points,
        target_points=target,
        percentage=(points / target * 100) if target > 0 else Decimal("0"),
    )
    return report


def report_filename(settings: Settings, suffix: str) -> str:
    name = settings.server_name or "Servidor"
    safe = "".join(c if c.isalnum() or c in ("_", "-", ".") else "_" for c in name)
    return f"Relatorio_Produtividade_{safe}{suffix}"
