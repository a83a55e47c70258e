"""Testes da política de arredondamento."""

import pytest

from motor_avaliacao.application.rounding import arredondamento_altera, arredondar_nota


@pytest.mark.parametrize(
    "valor, esperado",
    [(4.5, 5), (9.5, 10), (9.49, 9), (0.5, 1), (2.675, 3), (13.799999999999999, 14), (10, 10), (0, 0)],
)
def test_arredondar_meio_para_cima(valor, esperado):
    assert arredondar_nota(valor) == esperado


@pytest.mark.parametrize("valor", [0, 4.5, 6.49, 9.5, 12.25, 19.999, 20])
def test_arredondamento_idempotente(valor):
    assert arredondar_nota(arredondar_nota(valor)) == arredondar_nota(valor)


def test_media_calculada_nao_perde_o_meio():
    media = (9 + 10) / 2

    assert arredondar_nota(media) == 10


def test_arredondamento_altera():
    assert arredondamento_altera(9.5) is True
    assert arredondamento_altera(10.0) is False
