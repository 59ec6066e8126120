import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .catalog import TASKS
from .config import load_config
from .errors import PersistenceError
from .extraction_service import SUPPORTED_EXTS
from .period import Period, decode_period_key, normalize_month_token
from .reports import build_report, report_filename
from .tracker import ProductivityTracker
from .writer import write_report_csv, write_report_json, write_report_txt


def find_documents(inputs: List[str]) -> List[Path]:
    """
    Développe les chemins donnés: fichiers tels quels, dossiers parcourus
    récursivement pour les extensions supportées (PDF, CSV, tableurs, images).
    """
    docs: List[Path] = []
    for raw in inputs:
        root = Path(raw).expanduser().resolve()
        if root.is_dir():
            docs.extend(
                sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in SUPPORTED_EXTS)
            )
        else:
            docs.append(root)
    return docs


def _parse_period(raw: str) -> Period:
    year, _, month = raw.partition("-")
    code = normalize_month_token(month)
    if code is None:
        raise argparse.ArgumentTypeError(f"période invalide: {raw!r} (ex: 2026-fev)")
    try:
        return decode_period_key(f"{int(year)}-{code}")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"période invalide: {raw!r} (ex: 2026-fev)") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Controle de produtividade: saisie, import de documents, rapports.")
    parser.add_argument("--data-dir", required=False, help="Dossier des données (défaut: ~/.produtividade)")
    parser.add_argument("--model", required=False, help="Modèle / déploiement du service d'extraction")
    parser.add_argument("--pdf-mode", required=False, choices=["file", "pages"], help="Envoi des PDF: fichier ou pages")
    parser.add_argument("--dpi", required=False, type=int, default=None, help="DPI du rendu des pages (défaut via VLM_DPI=200)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Importer un ou plusieurs documents (fichiers ou dossiers)")
    p_import.add_argument("inputs", nargs="+")

    p_set = sub.add_parser("set", help="Saisir un compteur")
    p_set.add_argument("period", type=_parse_period, help="ex: 2026-fev")
    p_set.add_argument("task_id", type=int)
    p_set.add_argument("value")

    sub.add_parser("totals", help="Afficher les totaux (filtre courant)")

    p_report = sub.add_parser("report", help="Générer le rapport")
    p_report.add_argument("--out", default=".", help="Dossier de sortie")
    p_report.add_argument("--format", choices=["json", "csv", "txt"], default="csv")
    p_report.add_argument("--year", type=int, default=None, help="Année affichée (défaut: année active)")

    p_reset = sub.add_parser("reset", help="Effacer toutes les données")
    p_reset.add_argument("--yes", action="store_true", help="Confirme l'effacement")

    p_settings = sub.add_parser("settings", help="Modifier les réglages")
    p_settings.add_argument("--server-name")
    p_settings.add_argument("--goal", help="Objectif journalier de points")
    p_settings.add_argument("--days", type=int, help="Jours travaillés")
    p_settings.add_argument("--filter-start", type=_parse_period)
    p_settings.add_argument("--filter-end", type=_parse_period)
    p_settings.add_argument("--filter", dest="filter_active", action="store_true", default=None)
    p_settings.add_argument("--no-filter", dest="filter_active", action="store_false")
    return parser


def _print_totals(tracker: ProductivityTracker) -> None:
    totals = tracker.totals()
    for task in TASKS:
        if totals[task.id]:
            print(f"{task.id:>4}  {task.name:<55} {totals[task.id]:>5}  {totals[task.id] * task.unit_value:>7.1f}")
    print(f"Esforço total: {tracker.total_effort()}")
    print(f"Pontos: {tracker.total_points():.1f} / meta {tracker.target_points():.1f} ({tracker.percentage_reached():.2f}%)")


async def _import_all(tracker: ProductivityTracker, docs: List[Path]) -> int:
    failures = 0
    for i, doc in enumerate(docs, start=1):
        print(f"\n[{i}/{len(docs)}] {doc}")
        outcome = await tracker.merge_import(str(doc))
        if outcome.ok:
            record = outcome.record
            print(f"✅ {len(record.entries)} atividade(s) importada(s) para {record.period}")
        else:
            failures += 1
            print(f"❌ {outcome.message}")
    return failures


def main(argv: Optional[List[str]] = None) -> None:
    # Charger .env avant toute lecture d'os.getenv (config/services)
    load_dotenv(find_dotenv(usecwd=True), override=False)

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    cfg = load_config(data_dir=args.data_dir, model=args.model, pdf_mode=args.pdf_mode, dpi=args.dpi)
    try:
        tracker = ProductivityTracker(cfg)

        if args.command == "import":
            docs = find_documents(args.inputs)
            if not docs:
                print("Nenhum arquivo encontrado.")
                sys.exit(0)
            try:
                failures = asyncio.run(_import_all(tracker, docs))
            except KeyboardInterrupt:
                print("Interrompido pelo usuário.")
                sys.exit(130)
            sys.exit(1 if failures else 0)

        if args.command == "set":
            count = tracker.set_count(args.period, args.task_id, args.value)
            print(f"{args.period} / tarefa {args.task_id} = {count}")
        elif args.command == "totals":
            _print_totals(tracker)
        elif args.command == "report":
            report = build_report(tracker.store, tracker.settings, args.year or tracker.active_year, tracker.totals())
            out_dir = Path(args.out).expanduser().resolve()
            out_dir.mkdir(parents=True, exist_ok=True)
            writer = {"json": write_report_json, "csv": write_report_csv, "txt": write_report_txt}[args.format]
            path = writer(out_dir, report_filename(tracker.settings, ""), report)
            print(f"✅ Relatório gerado: {path}")
        elif args.command == "reset":
            if not args.yes:
                print("Confirme a limpeza com --yes (operação irreversível).")
                sys.exit(1)
            tracker.reset(confirm=True)
            print("✅ Planilha limpa.")
        elif args.command == "settings":
            changes = {
                "server_name": args.server_name,
                "daily_effort_goal": args.goal,
                "days_worked": args.days,
                "filter_start": args.filter_start,
                "filter_end": args.filter_end,
                "is_filter_active": args.filter_active,
            }
            settings = tracker.update_settings(**{k: v for k, v in changes.items() if v is not None})
            print(settings)
    except PersistenceError as e:
        print(f"❌ Falha ao salvar os dados → {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
