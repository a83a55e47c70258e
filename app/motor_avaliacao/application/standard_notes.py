"""Observações padronizadas das decisões de progressão.

Cada estado terminal tem exatamente um modelo de texto, para que os documentos
exportados (pautas, boletins) sejam consistentes entre turmas e escolas.
"""

from typing import Sequence


def _numero(valor: float) -> str:
    if float(valor).is_integer():
        return str(int(valor))
    return f"{valor:.2f}".replace(".", ",")


def _percentagem(valor: float) -> str:
    return f"{valor:.2f}".replace(".", ",")


def _lista(nomes: Sequence[str]) -> str:
    nomes = list(nomes)
    if len(nomes) <= 1:
        return "".join(nomes)
    return f"{', '.join(nomes[:-1])} e {nomes[-1]}"


class GeradorObservacao:
    """Gera a observação da decisão a partir dos parâmetros usados."""

    @staticmethod
    def aprovacao_plena(limiar: float, frequencia: float) -> str:
        return (
            f"Transitou por ter obtido classificação igual ou superior a {_numero(limiar)} valores "
            f"em todas as disciplinas e frequência de {_percentagem(frequencia)}%."
        )

    @staticmethod
    def condicional(piso: float, limiar: float, disciplinas: Sequence[str]) -> str:
        return (
            f"Transitou condicionalmente com {len(disciplinas)} disciplina(s) entre "
            f"{_numero(piso)} e {_numero(limiar - 1)} valores: {_lista(disciplinas)}. "
            "Deve realizar Exame Extraordinário conforme calendário oficial."
        )

    @staticmethod
    def abaixo_limiar(limiar: float, disciplinas: Sequence[str]) -> str:
        return (
            f"Não transitou por ter obtido classificação inferior a {_numero(limiar)} valores "
            f"em {len(disciplinas)} disciplina(s): {_lista(disciplinas)}."
        )

    @staticmethod
    def frequencia_insuficiente(frequencia: float, minimo: float) -> str:
        return (
            f"Não transitou por frequência insuficiente ({_percentagem(frequencia)}%, "
            f"inferior ao mínimo de {_percentagem(minimo)}%)."
        )

    @staticmethod
    def disciplinas_obrigatorias(limiar: float, disciplinas: Sequence[str]) -> str:
        return (
            f"Não transitou por ter obtido classificação inferior a {_numero(limiar)} valores "
            f"simultaneamente em {_lista(disciplinas)}."
        )
