from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class TaskDefinition:
    """Type de tâche suivi: identifiant stable, libellé et valeur unitaire en points."""
    id: int
    name: str
    unit_value: Decimal


def _task(task_id: int, name: str, unit_value: str) -> TaskDefinition:
    return TaskDefinition(id=task_id, name=name, unit_value=Decimal(unit_value))


# Catalogue figé: les trous d'identifiants (12, 25, 34-36...) et la paire 10/11 sont voulus.
TASKS: Tuple[TaskDefinition, ...] = (
    _task(1, "Despachos", "0.5"),
    _task(2, "Ata de Audiência", "0.7"),
    _task(3, "Decisão Recurso", "0.4"),
    _task(4, "Decisão", "0.7"),
    _task(5, "Sentença - IDPJ", "1.4"),
    _task(6, "Sentença com mérito", "1.1"),
    _task(7, "Sentença sem mérito", "0.7"),
    _task(8, "Sentença ED", "0.7"),
    _task(9, "Sentença EE / Impugnação à Sentença de Liquidação", "1.4"),
    _task(10, "Sentença", "0.7"),
    _task(11, "Sentença Parcial", "0.7"),
    _task(13, "Mandado", "0.5"),
    _task(14, "Intimação", "0.2"),
    _task(15, "Alvará", "0.5"),
    _task(16, "Carta Precatória", "0.5"),
    _task(17, "Edital", "0.2"),
    _task(18, "Notificação", "0.2"),
    _task(19, "Ofício", "0.5"),
    _task(20, "Precatório", "0.7"),
    _task(21, "RPV", "0.5"),
    _task(22, "Perícias - Requisição de Honorários", "0.7"),
    _task(23, "Certidão de Crédito", "0.7"),
    _task(24, "SISBAJUD", "0.5"),
    _task(26, "INFOJUD", "0.7"),
    _task(27, "INFOSEG", "0.7"),
    _task(28, "RENAJUD", "0.4"),
    _task(291, "Ferramenta - Outras (especificar no registro detalhado)", "0.7"),
    _task(292, "Planilha de Cálculos - Sentenças", "1.8"),
    _task(30, "Atualização de Cálculos", "0.7"),
    _task(31, "Planilha de Cálculos PjeCalc", "1.8"),
    _task(32, "Documentos diversos", "0.1"),
    _task(33, "Certidão", "0.2"),
    _task(37, "Mudança de fase", "0.4"),
    _task(38, "Arquivamento", "0.4"),
    _task(39, "Pagamentos", "0.2"),
    _task(40, "Sobrestamento/Dessobrestamento", "0.2"),
    _task(41, "BNDT", "0.1"),
    _task(42, "Mudança de classe processual", "0.1"),
    _task(43, "Audiência (marcação ou cancelamento)", "0.1"),
    _task(44, "Conclusão", "0.1"),
    _task(45, "Desarquivamento", "0.1"),
    _task(48, "Retificação", "0.1"),
    _task(49, "Escaninho (Baixa de petição)", "0.1"),
)

TASKS_BY_ID: Dict[int, TaskDefinition] = {task.id: task for task in TASKS}

MONTHS: Tuple[str, ...] = (
    "jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez",
)

YEARS: Tuple[int, ...] = (2026, 2027)

# Libellés du "Relatório Sintético de Teletrabalho" → identifiant du catalogue.
# "11-Sentença" pointe volontairement vers 10 et "29-Planilha de Cálculos" vers 292.
DOCUMENT_LABELS: Tuple[Tuple[str, int], ...] = (
    ("01-Despachos", 1),
    ("02-Ata de Audiência", 2),
    ("03-Decisão Recurso", 3),
    ("04-Decisão", 4),
    ("05-Sentença IDPJ", 5),
    ("06-Sentença com mérito", 6),
    ("07-Sentença sem mérito", 7),
    ("08-Sentença ED", 8),
    ("09-Sentença EE", 9),
    ("11-Sentença", 10),
    ("13-Mandado", 13),
    ("14-Intimação", 14),
    ("15-Alvará", 15),
    ("16-Carta Precatória", 16),
    ("17-Edital", 17),
    ("18-Notificação", 18),
    ("19-Ofício", 19),
    ("20-Precatório", 20),
    ("21-RPV", 21),
    ("22-Perícias", 22),
    ("23-Certidão Crédito", 23),
    ("24-Sisbajud", 24),
    ("26-INFOJUD", 26),
    ("27-INFOSEG", 27),
    ("28-RENAJUD", 28),
    ("29-Planilha de Cálculos", 292),
    ("30-Atualização de Cálculos", 30),
    ("31-Planilha de Cálculos PjeCalc", 31),
    ("32-Documento Diverso", 32),
    ("33-Certidão", 33),
    ("37-Mudança Fase", 37),
    ("38-Arquivamento", 38),
    ("39-Pagamentos", 39),
    ("40-Sobrestament/Dessobestamento", 40),
    ("41-BNDT", 41),
    ("42-Mudança classe processual", 42),
    ("43-Audiência", 43),
    ("44-Conclusão", 44),
    ("45-Desarquivamento", 45),
    ("48-Retificação", 48),
    ("49-Escaninho", 49),
)

# Données initiales du premier lancement (février 2026), reprises telles quelles.
SEED_PERIOD_KEY = "2026-fev"
SEED_COUNTS: Dict[int, int] = {
    1: 11, 2: 1, 4: 16, 10: 13, 13: 1, 14: 24, 15: 1, 292: 38, 30: 26, 31: 24,
    33: 39, 37: 23, 38: 10, 39: 27, 40: 114, 44: 41, 48: 3, 49: 41,
}


def task_ids() -> List[int]:
    return [task.id for task in TASKS]


def unit_value(task_id: int) -> Decimal:
    task = TASKS_BY_ID.get(task_id)
    return task.unit_value if task else Decimal("0")
