"""Modelos de domínio para componentes de avaliação e notas.

Responsabilidades:
- Validar componentes de avaliação e notas lançadas
- Representar a nota final e o rastro de cálculo auditável
"""

import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from motor_avaliacao.domain.errors import DetalheErro

PADRAO_IDENTIFICADOR = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ComponenteAvaliacao(BaseModel):
    """Unidade avaliável de uma disciplina (ex.: P1, MAC, MT).

    Responsabilidades:
    - Declarar peso, escala e ordem de apresentação
    - Declarar fórmula e dependências quando calculado
    """

    id: str = Field(..., min_length=1)
    disciplina_id: str = Field(..., min_length=1)
    nome: str = Field(..., min_length=1)
    codigo: Optional[str] = Field(None, description="Identificador usado nas fórmulas")
    peso: float = Field(0.0, ge=0, le=100, description="Peso percentual no total da disciplina")
    escala_minima: float = 0.0
    escala_maxima: float = 20.0
    calculado: bool = False
    formula: Optional[str] = None
    dependencias: List[str] = Field(default_factory=list)
    obrigatorio: bool = True
    ordem: int = 0
    trimestre: Optional[int] = Field(None, ge=1, le=3)
    tipo_calculo: Literal["trimestral", "anual"] = "trimestral"
    contribui_nota_final: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _validar_consistencia(self):
        if self.codigo is None:
            if not PADRAO_IDENTIFICADOR.match(self.nome):
                raise ValueError(
                    f"Componente '{self.nome}' sem código: o nome não é um identificador válido."
                )
            self.codigo = self.nome
        elif not PADRAO_IDENTIFICADOR.match(self.codigo):
            raise ValueError(f"Código de componente inválido: '{self.codigo}'.")

        if self.escala_minima >= self.escala_maxima:
            raise ValueError(
                f"Escala inválida para '{self.codigo}': mínima {self.escala_minima} "
                f">= máxima {self.escala_maxima}."
            )
        if self.calculado and not (self.formula and self.formula.strip()):
            raise ValueError(f"Componente calculado '{self.codigo}' sem fórmula.")
        if self.tipo_calculo == "anual" and not self.calculado:
            raise ValueError(
                f"Componente anual '{self.codigo}' deve ser calculado a partir de T1, T2, T3 "
                "e das notas do 3º trimestre."
            )
        return self


class ExpressaoFormula(BaseModel):
    """Resultado da validação de uma fórmula de componente."""

    texto: str
    componentes_usados: List[str] = Field(default_factory=list)
    valida: bool = False
    mensagem: str = ""


class NotaBruta(BaseModel):
    """Nota lançada para um aluno, componente e trimestre. Imutável."""

    aluno_id: str = Field(..., min_length=1)
    componente_id: str = Field(..., min_length=1)
    trimestre: int = Field(..., ge=1, le=3)
    valor: float
    observacao: Optional[str] = None
    registado_em: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class PassoCalculo(BaseModel):
    """Contribuição de um componente para a nota final."""

    componente_id: str
    codigo: str
    valor: Optional[float] = None
    peso: float
    contribuicao: float = 0.0
    calculo: str = ""
    formula: Optional[str] = None
    ausente: bool = False


class RastroCalculo(BaseModel):
    """Rastro auditável do cálculo de uma nota final."""

    ordem_avaliacao: List[str] = Field(default_factory=list)
    valores_calculados: Dict[str, float] = Field(default_factory=dict)
    passos: List[PassoCalculo] = Field(default_factory=list)
    peso_total: float = 0.0
    fator_normalizacao: float = 1.0
    expressao_completa: str = ""


class NotaFinal(BaseModel):
    """Nota da disciplina por trimestre (MT) ou anual (MF, trimestre nulo)."""

    aluno_id: str
    disciplina_id: str
    trimestre: Optional[int] = None
    nota_final: float
    classificacao: str
    rastro: RastroCalculo
    avisos: List[str] = Field(default_factory=list)
    calculado_em: datetime


class ResultadoNotaFinal(BaseModel):
    """Nota final ou erro estruturado para um aluno/disciplina/trimestre."""

    aluno_id: str
    disciplina_id: str
    trimestre: Optional[int] = None
    nota: Optional[NotaFinal] = None
    erro: Optional[DetalheErro] = None

    @property
    def resolvida(self) -> bool:
        return self.nota is not None


class RegraAgregacaoAnual(BaseModel):
    """Regra explícita para combinar as notas trimestrais na nota anual.

    Sem fórmula, usa média ponderada pelos pesos de cada trimestre
    (pesos iguais por omissão). Com fórmula, usa os identificadores T1, T2 e T3.
    """

    pesos_trimestres: Dict[int, float] = Field(default_factory=lambda: {1: 1.0, 2: 1.0, 3: 1.0})
    formula: Optional[str] = None
    descricao: str = "Média simples"

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validar_pesos(self):
        if self.formula is None:
            if not self.pesos_trimestres:
                raise ValueError("Regra anual sem pesos e sem fórmula.")
            if any(t not in (1, 2, 3) for t in self.pesos_trimestres):
                raise ValueError("Pesos de trimestre devem usar as chaves 1, 2 e 3.")
            if any(p < 0 for p in self.pesos_trimestres.values()):
                raise ValueError("Pesos de trimestre não podem ser negativos.")
            if sum(self.pesos_trimestres.values()) <= 0:
                raise ValueError("Soma dos pesos de trimestre deve ser positiva.")
        return self

    @property
    def trimestres(self) -> List[int]:
        if self.formula is not None:
            return [t for t in (1, 2, 3) if re.search(rf"\bT{t}\b", self.formula)]
        return sorted(t for t, peso in self.pesos_trimestres.items() if peso > 0)
