"""Fixtures compartilhadas para os testes."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import pytest

RAIZ = Path(__file__).resolve().parents[2]
DIRETORIO_APP = RAIZ / "app"
if str(DIRETORIO_APP) not in sys.path:
    sys.path.insert(0, str(DIRETORIO_APP))

from motor_avaliacao.domain.grades import ComponenteAvaliacao, NotaBruta  # noqa: E402
from motor_avaliacao.domain.policy import conjunto_politicas_padrao  # noqa: E402
from motor_avaliacao.domain.progression import EntradaProgressao, NotaDisciplina  # noqa: E402

INSTANTE = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def instante():
    return INSTANTE


@pytest.fixture()
def componentes_matematica():
    """Componentes de Matemática: duas provas e trabalho, MT calculada."""
    return [
        ComponenteAvaliacao(id="mat-p1", disciplina_id="MAT", nome="P1", peso=30, ordem=1),
        ComponenteAvaliacao(id="mat-p2", disciplina_id="MAT", nome="P2", peso=30, ordem=2),
        ComponenteAvaliacao(id="mat-trab", disciplina_id="MAT", nome="TRAB", peso=40, ordem=3),
        ComponenteAvaliacao(
            id="mat-mt",
            disciplina_id="MAT",
            nome="MT",
            peso=100,
            ordem=4,
            calculado=True,
            formula="0.3 * P1 + 0.3 * P2 + 0.4 * TRAB",
        ),
    ]


@pytest.fixture()
def componentes_simples():
    """Componentes ponderados sem calculados (40% + 60%)."""
    return [
        ComponenteAvaliacao(id="por-mac", disciplina_id="POR", nome="MAC", peso=40, ordem=1),
        ComponenteAvaliacao(id="por-npt", disciplina_id="POR", nome="NPT", peso=60, ordem=2),
    ]


@pytest.fixture()
def notas_matematica():
    return [
        NotaBruta(aluno_id="A1", componente_id="mat-p1", trimestre=1, valor=12),
        NotaBruta(aluno_id="A1", componente_id="mat-p2", trimestre=1, valor=14),
        NotaBruta(aluno_id="A1", componente_id="mat-trab", trimestre=1, valor=15),
    ]


@pytest.fixture()
def politicas():
    return conjunto_politicas_padrao()


def criar_entrada(classe, notas, frequencia=90.0, nomes=None, aluno_id="A1"):
    """Monta uma EntradaProgressao a partir de uma lista de notas."""
    nomes = nomes or [f"Disciplina {i + 1}" for i in range(len(notas))]
    return EntradaProgressao(
        aluno_id=aluno_id,
        ano_lectivo="2024/2025",
        classe=classe,
        frequencia=frequencia,
        disciplinas=[
            NotaDisciplina(disciplina_id=f"D{i + 1}", nome=nome, nota=nota)
            for i, (nome, nota) in enumerate(zip(nomes, notas))
        ],
    )


@pytest.fixture()
def dataframe_notas():
    """Notas lançadas de dois alunos em Língua Portuguesa (três trimestres)."""
    linhas = []
    for aluno_id, valores in {"A1": (12, 14), "A2": (8, 9)}.items():
        for trimestre in (1, 2, 3):
            linhas.append({"ALUNO_ID": aluno_id, "COMPONENTE_ID": "por-mac", "TRIMESTRE": trimestre, "VALOR": valores[0]})
            linhas.append({"ALUNO_ID": aluno_id, "COMPONENTE_ID": "por-npt", "TRIMESTRE": trimestre, "VALOR": valores[1]})
    return pd.DataFrame(linhas)


@pytest.fixture()
def fabrica_entrada():
    return criar_entrada
