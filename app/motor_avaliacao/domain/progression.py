"""Modelos de domínio para a decisão de progressão do aluno.

Responsabilidades:
- Representar as notas anuais que alimentam a decisão
- Representar a decisão terminal e o seu motivo
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from motor_avaliacao.domain.errors import DetalheErro


class EstadoTransicao(str, Enum):
    TRANSITA = "Transita"
    MATRICULA_CONDICIONAL = "Matrícula Condicional"
    NAO_TRANSITA = "Não Transita"


class MotivoDecisao(str, Enum):
    FREQUENCIA_INSUFICIENTE = "InsufficientAttendance"
    APROVACAO_PLENA = "FullPass"
    ABAIXO_LIMIAR_CLASSE_TERMINAL = "BelowThresholdTerminalClass"
    ABAIXO_PISO_CONDICIONAL = "BelowConditionalFloor"
    EXCESSO_DISCIPLINAS_CONDICIONAIS = "TooManyConditionalSubjects"
    DISCIPLINAS_OBRIGATORIAS_ABAIXO_LIMIAR = "MandatorySubjectsBelowThreshold"
    TRANSICAO_CONDICIONAL = "ConditionalTransition"
    EXAME_EXTRAORDINARIO_REPROVADO = "SupplementaryExamFailed"


class TipoExame(str, Enum):
    NACIONAL = "Nacional"
    EXTRAORDINARIO = "Extraordinário"
    RECURSO = "Recurso"


class NotaDisciplina(BaseModel):
    """Nota anual de uma disciplina. Nota nula indica disciplina não resolvida."""

    disciplina_id: str = Field(..., min_length=1)
    nome: str = Field(..., min_length=1)
    nota: Optional[float] = Field(None, ge=0)
    erro: Optional[DetalheErro] = None


class RegistoFrequencia(BaseModel):
    """Frequência anual de um aluno num ano lectivo."""

    aluno_id: str = Field(..., min_length=1)
    ano_lectivo: str = Field(..., min_length=1)
    percentagem: float = Field(..., ge=0, le=100)


class EntradaProgressao(BaseModel):
    """Dados de um aluno para uma execução do motor de progressão."""

    aluno_id: str = Field(..., min_length=1)
    ano_lectivo: str = Field(..., min_length=1)
    classe: int = Field(..., ge=1, le=13)
    disciplinas: List[NotaDisciplina] = Field(default_factory=list)
    frequencia: Optional[float] = Field(None, ge=0, le=100, description="Frequência anual (%)")


class DecisaoProgressao(BaseModel):
    """Decisão terminal por aluno e ano lectivo. Nunca é alterada, só substituída."""

    decisao_id: str
    aluno_id: str
    ano_lectivo: str
    classe: int
    estado: EstadoTransicao
    motivo: MotivoDecisao
    disciplinas_em_risco: List[str] = Field(default_factory=list)
    observacao: str
    arredondamento_aplicado: bool = False
    arredondamento_influenciou: bool = False
    frequencia: Optional[float] = None
    tipo_exame: Optional[TipoExame] = None
    exame_exigido: bool = False
    conclusao_bloqueada: bool = False
    limiar_usado: float
    versao_politica: Optional[str] = None
    substitui_decisao_id: Optional[str] = None
    decidido_em: datetime


class ResultadoProgressao(BaseModel):
    """Decisão ou recusa estruturada (dados incompletos) para um aluno."""

    aluno_id: str
    decisao: Optional[DecisaoProgressao] = None
    erro: Optional[DetalheErro] = None

    @property
    def incompleto(self) -> bool:
        return self.decisao is None
