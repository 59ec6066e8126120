import csv
import json
from pathlib import Path
from typing import Any, Dict, List

from .reports import Report


def _fmt(value: Any) -> str:
    return f"{value:.1f}"


def report_to_dict(report: Report) -> Dict[str, Any]:
    summary = report.summary
    return {
        "title": report.title,
        "period": report.period_label,
        "generatedAt": report.generated_at.isoformat(timespec="seconds"),
        "months": report.months,
        "rows": [
            {
                "#": row.index,
                "taskId": row.task_id,
                "Atividade": row.name,
                **{m.upper(): row.monthly[m] for m in report.months},
                "Esforço Realizado": row.effort,
                "Vr Unit Esforço": str(row.unit_value),
                "Alcance Pontos": str(row.points),
            }
            for row in report.rows
        ],
        "summary": {
            "totalEffort": summary.total_effort,
            "totalPoints": str(summary.total_points),
            "targetPoints": str(summary.target_points),
            "percentage": f"{summary.percentage:.2f}",
        }
        if summary
        else None,
    }


def write_report_json(out_dir: Path, prefix: str, report: Report) -> Path:
    """Écrit le rapport complet (lignes + synthèse) dans `<prefix>.json`."""
    path = out_dir / f"{prefix}.json"
    path.write_text(json.dumps(report_to_dict(report), ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def write_report_csv(out_dir: Path, prefix: str, report: Report) -> Path:
    """
    Écrit le tableau du rapport dans `<prefix>.csv`, avec une ligne finale
    "TOTAIS GERAIS" (effort et points cumulés).
    """
    path = out_dir / f"{prefix}.csv"
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, delimiter=";")
        writer.writerow(report.headers)
        for row in report.rows:
            writer.writerow(
                [row.index, row.name]
                + [row.monthly[m] for m in report.months]
                + [row.effort, _fmt(row.unit_value), _fmt(row.points)]
            )
        if report.summary:
            blanks = [""] * len(report.months)
            writer.writerow(
                ["", "TOTAIS GERAIS"] + blanks + [report.summary.total_effort, "", _fmt(report.summary.total_points)]
            )
    return path


def write_report_txt(out_dir: Path, prefix: str, report: Report) -> Path:
    lines: List[str] = [report.title, report.period_label, f"Gerado em: {report.generated_at:%d/%m/%Y %H:%M}", ""]
    for row in report.rows:
        if row.effort:
            lines.append(f"{row.index:>2}. {row.name}: {row.effort} x {_fmt(row.unit_value)} = {_fmt(row.points)}")
    if report.summary:
        s = report.summary
        lines += [
            "",
            "Resumo do Período:",
            f"Esforço Total: {s.total_effort}",
            f"Pontuação Alcançada: {_fmt(s.total_points)}",
            f"Meta de Pontos: {_fmt(s.target_points)}",
            f"Percentual Alcançado: {s.percentage:.2f}%",
        ]
    path = out_dir / f"{prefix}.txt"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
