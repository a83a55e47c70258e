"""Política única de arredondamento de notas.

O arredondamento é aplicado uma única vez, imediatamente antes de qualquer
comparação com limiares. Valores brutos ficam apenas para exibição e auditoria.
"""

from decimal import ROUND_HALF_UP, Decimal


def arredondar_nota(valor: float) -> int:
    """Arredonda para o inteiro mais próximo, com meios para cima (9.5 -> 10).

    A conversão usa a representação decimal mais curta do valor, de modo que
    uma média calculada como 9.5 não seja tratada como 9.4999...
    """
    return int(Decimal(repr(float(valor))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def arredondamento_altera(valor: float) -> bool:
    """Indica se o arredondamento muda o valor."""
    return Decimal(repr(float(valor))) != arredondar_nota(valor)
