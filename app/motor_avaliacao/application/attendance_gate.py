"""Porta de frequência aplicada antes de qualquer decisão por notas."""

from typing import Optional

from motor_avaliacao.config.settings import Configuracoes


class PortaoFrequencia:
    """Verifica a frequência anual mínima (comparação inclusiva)."""

    @staticmethod
    def verificar(percentagem: float, minimo: Optional[float] = None) -> bool:
        """Retorna True quando a frequência atinge o mínimo.

        Parâmetros:
        - percentagem (float): frequência anual do aluno (0-100)
        - minimo (float | None): mínimo exigido; usa o valor de referência se nulo

        Retorno:
        - bool: True se percentagem >= mínimo
        """
        limite = Configuracoes.FREQUENCIA_MINIMA if minimo is None else minimo
        return float(percentagem) >= float(limite)
