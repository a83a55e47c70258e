"""Testes da resolução de dependências entre componentes."""

import pytest

from motor_avaliacao.application.component_resolver import ResolvedorComponentes
from motor_avaliacao.domain.errors import ComponenteDesconhecido, ConfiguracaoInvalida, DependenciaCiclica
from motor_avaliacao.domain.grades import ComponenteAvaliacao


def _calculado(id_, nome, formula, ordem=0, disciplina_id="MAT", **extra):
    return ComponenteAvaliacao(
        id=id_, disciplina_id=disciplina_id, nome=nome, calculado=True, formula=formula, ordem=ordem, **extra
    )


def test_ordem_topologica_valida(componentes_matematica):
    ordenados = ResolvedorComponentes.ordenar(list(reversed(componentes_matematica)))
    posicao = {c.codigo: i for i, c in enumerate(ordenados)}

    assert [c.codigo for c in ordenados] == ["P1", "P2", "TRAB", "MT"]
    for dependencia in ("P1", "P2", "TRAB"):
        assert posicao[dependencia] < posicao["MT"]


def test_ordem_deterministica(componentes_matematica):
    primeira = [c.id for c in ResolvedorComponentes.ordenar(componentes_matematica)]
    segunda = [c.id for c in ResolvedorComponentes.ordenar(list(reversed(componentes_matematica)))]

    assert primeira == segunda


def test_cadeia_de_calculados():
    componentes = [
        _calculado("mf", "MF", "(MT1 + EX) / 2", ordem=1),
        _calculado("mt1", "MT1", "(P1 + P2) / 2", ordem=2),
        ComponenteAvaliacao(id="ex", disciplina_id="MAT", nome="EX", ordem=3),
        ComponenteAvaliacao(id="p1", disciplina_id="MAT", nome="P1", ordem=4),
        ComponenteAvaliacao(id="p2", disciplina_id="MAT", nome="P2", ordem=5),
    ]

    ordenados = [c.codigo for c in ResolvedorComponentes.ordenar(componentes)]

    assert ordenados.index("MT1") > ordenados.index("P2")
    assert ordenados[-1] == "MF"


def test_dependencias_explicitas_sao_respeitadas():
    componentes = [
        _calculado("bonus", "BONUS", "2", ordem=0, dependencias=["p1"]),
        ComponenteAvaliacao(id="p1", disciplina_id="MAT", nome="P1", ordem=5),
    ]

    assert [c.id for c in ResolvedorComponentes.ordenar(componentes)] == ["p1", "bonus"]


def test_auto_dependencia_e_ciclica():
    with pytest.raises(DependenciaCiclica) as erro:
        ResolvedorComponentes.ordenar([_calculado("x", "X", "X + 1")])

    assert erro.value.componente == "X"


def test_ciclo_transitivo_nomeia_caminho():
    componentes = [
        _calculado("a", "A", "B + 1", ordem=1),
        _calculado("b", "B", "A + 1", ordem=2),
        ComponenteAvaliacao(id="p1", disciplina_id="MAT", nome="P1"),
    ]

    with pytest.raises(DependenciaCiclica) as erro:
        ResolvedorComponentes.ordenar(componentes)

    assert erro.value.componente == "A"
    assert "A -> B -> A" in erro.value.mensagem
    assert erro.value.disciplina_id == "MAT"


def test_referencia_desconhecida():
    with pytest.raises(ComponenteDesconhecido) as erro:
        ResolvedorComponentes.ordenar([_calculado("mt", "MT", "P1 + EXAME")])

    assert erro.value.componente == "P1"


def test_dependencia_de_outra_disciplina():
    componentes = [
        _calculado("mt", "MT", "1", dependencias=["por-p1"]),
        ComponenteAvaliacao(id="por-p1", disciplina_id="POR", nome="P1"),
    ]

    with pytest.raises(ComponenteDesconhecido):
        ResolvedorComponentes.ordenar(componentes)


def test_dependencia_de_outro_trimestre():
    componentes = [
        _calculado("mt", "MT", "P1", trimestre=1),
        ComponenteAvaliacao(id="p1", disciplina_id="MAT", nome="P1", trimestre=2),
    ]

    with pytest.raises(ComponenteDesconhecido):
        ResolvedorComponentes.ordenar(componentes)


def test_codigos_repetidos():
    componentes = [
        ComponenteAvaliacao(id="p1", disciplina_id="MAT", nome="P1"),
        ComponenteAvaliacao(id="p1b", disciplina_id="MAT", nome="Prova 1", codigo="P1"),
    ]

    with pytest.raises(ConfiguracaoInvalida):
        ResolvedorComponentes.ordenar(componentes)
