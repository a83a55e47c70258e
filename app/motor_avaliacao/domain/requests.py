"""Modelos de entrada da API de avaliação."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from motor_avaliacao.domain.grades import ComponenteAvaliacao, NotaBruta, RegraAgregacaoAnual
from motor_avaliacao.domain.progression import DecisaoProgressao, EntradaProgressao


class PedidoValidacaoFormula(BaseModel):
    formula: str
    componentes_disponiveis: Optional[List[str]] = None


class PedidoNotaFinal(BaseModel):
    """Componentes e notas lançadas de um aluno numa disciplina e trimestre."""

    aluno_id: str = Field(..., min_length=1)
    disciplina_id: str = Field(..., min_length=1)
    trimestre: int = Field(..., ge=1, le=3)
    componentes: List[ComponenteAvaliacao]
    notas: List[NotaBruta] = Field(default_factory=list)


class PedidoNotaAnual(BaseModel):
    aluno_id: str = Field(..., min_length=1)
    disciplina_id: str = Field(..., min_length=1)
    notas_trimestrais: Dict[int, float]
    regra: Optional[RegraAgregacaoAnual] = None
    escala_maxima: float = Field(20.0, gt=0)
    componentes: List[ComponenteAvaliacao] = Field(default_factory=list)
    notas: List[NotaBruta] = Field(default_factory=list)


class PedidoExameExtraordinario(BaseModel):
    """Resultado do exame extraordinário de um aluno em matrícula condicional."""

    entrada: EntradaProgressao
    decisao_anterior: DecisaoProgressao
    notas_exame: Dict[str, float] = Field(..., description="disciplina_id -> nota do exame")
