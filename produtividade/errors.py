from typing import Optional


class ProdutividadeError(RuntimeError):
    """Erreur de base du projet."""


class ConfigError(ProdutividadeError):
    """Configuration manquante (identifiants du service d'extraction, etc.)."""


class PersistenceError(ProdutividadeError):
    """Échec d'écriture ou de lecture des documents persistés."""


class ImportFailure(ProdutividadeError):
    """
    Échec d'un import de document.

    `kind` identifie la nature de l'échec; `str(exc)` est le message affichable
    à l'utilisateur (en portugais, comme l'interface).
    """

    kind = "import"
    default_message = "Falha ao processar o documento. Verifique o formato e tente novamente."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class ExtractionFormatError(ImportFailure):
    """La réponse du service n'est pas un JSON exploitable."""

    kind = "format"
    default_message = (
        "O sistema não conseguiu processar a resposta do documento. "
        "Por favor, tente novamente ou use um arquivo mais legível."
    )

    def __init__(self, raw_text: str = "", message: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class UnrecognizedPeriodError(ImportFailure):
    """Mois ou année hors du vocabulaire fermé des périodes."""

    kind = "period"

    def __init__(self, raw_value: object = None) -> None:
        self.raw_value = raw_value
        shown = raw_value if raw_value not in (None, "") else "Não encontrado"
        super().__init__(
            f"Mês não identificado no documento: {shown}. "
            "Verifique se o período está visível no arquivo."
        )


class EmptyExtractionError(ImportFailure):
    """Document lisible mais sans aucune quantité exploitable."""

    kind = "empty"
    default_message = (
        "Não conseguimos extrair dados de produtividade deste documento. "
        "Certifique-se de que o arquivo contém a lista de atividades e suas respectivas quantidades."
    )


class ServiceError(ImportFailure):
    """L'appel au service d'extraction a échoué (réseau, quota, configuration)."""

    kind = "service"
    default_message = "Falha ao consultar o serviço de extração. Tente novamente mais tarde."


class UnsupportedFileError(ImportFailure):
    """Fichier introuvable, vide ou illisible."""

    kind = "file"
    default_message = "Não foi possível ler o arquivo selecionado."


class ImportBusyError(ImportFailure):
    """Un import est déjà en cours."""

    kind = "busy"
    default_message = "Já existe uma importação em andamento. Aguarde a conclusão."
