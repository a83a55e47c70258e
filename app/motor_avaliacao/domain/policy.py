"""Políticas de transição por nível de ensino e classe.

Responsabilidades:
- Representar limiares oficiais como configuração imutável e versionada
- Validar combinações inconsistentes (ex.: classe terminal com condicional)
- Fornecer o conjunto de referência com os valores oficiais documentados
"""

from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

VERSAO_REFERENCIA = "referencia-2025.1"
NOMES_OBRIGATORIOS_PADRAO = ("portugues", "matematica")


class NivelEnsino(str, Enum):
    PRIMARIO = "Ensino Primário"
    SECUNDARIO_I = "Ensino Secundário I Ciclo"
    SECUNDARIO_II = "Ensino Secundário II Ciclo"


class PoliticaClasse(BaseModel):
    """Regras de transição aplicáveis a uma classe.

    Responsabilidades:
    - Declarar limiar de aprovação e faixa condicional
    - Declarar disciplinas nucleares e restrições da classe
    """

    nivel: NivelEnsino
    classe: int = Field(..., ge=1, le=13)
    limiar_aprovacao: float = Field(..., gt=0)
    piso_condicional: Optional[float] = Field(None, ge=0)
    maximo_disciplinas_condicionais: int = Field(0, ge=0)
    disciplinas_obrigatorias: FrozenSet[str] = frozenset()
    nomes_obrigatorios: Tuple[str, ...] = NOMES_OBRIGATORIOS_PADRAO
    permite_condicional: bool = False
    classe_terminal: bool = False
    frequencia_minima: float = Field(66.67, ge=0, le=100)
    escala_maxima: float = Field(20.0, gt=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validar_regras(self):
        if self.classe_terminal and self.permite_condicional:
            raise ValueError(
                f"{self.classe}ª classe é terminal e não pode permitir transição condicional."
            )
        if self.permite_condicional:
            if self.piso_condicional is None:
                raise ValueError("Transição condicional exige piso_condicional.")
            if self.maximo_disciplinas_condicionais < 1:
                raise ValueError("Transição condicional exige ao menos uma disciplina permitida.")
        if self.piso_condicional is not None and self.piso_condicional >= self.limiar_aprovacao:
            raise ValueError(
                f"Piso condicional ({self.piso_condicional}) deve ser inferior ao "
                f"limiar de aprovação ({self.limiar_aprovacao})."
            )
        if self.limiar_aprovacao > self.escala_maxima:
            raise ValueError("Limiar de aprovação acima da escala máxima.")
        return self


class ConjuntoPoliticas(BaseModel):
    """Conjunto versionado de políticas, uma por classe."""

    versao: str = Field(..., min_length=1)
    descricao: str = ""
    politicas: Tuple[PoliticaClasse, ...]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validar_classes_unicas(self):
        classes = [p.classe for p in self.politicas]
        repetidas = sorted({c for c in classes if classes.count(c) > 1})
        if repetidas:
            raise ValueError(f"Classes com política duplicada: {repetidas}")
        return self

    def obter(self, classe: int) -> PoliticaClasse:
        """Retorna a política da classe.

        Exceções:
        - KeyError: quando a classe não tem política configurada
        """
        for politica in self.politicas:
            if politica.classe == classe:
                return politica
        raise KeyError(f"Sem política configurada para a {classe}ª classe (versão {self.versao}).")


def _primario(classe: int, terminal: bool = False) -> PoliticaClasse:
    return PoliticaClasse(
        nivel=NivelEnsino.PRIMARIO,
        classe=classe,
        limiar_aprovacao=5,
        escala_maxima=10,
        classe_terminal=terminal,
    )


def _secundario(
    nivel: NivelEnsino, classe: int, condicional: bool = False, terminal: bool = False
) -> PoliticaClasse:
    return PoliticaClasse(
        nivel=nivel,
        classe=classe,
        limiar_aprovacao=10,
        piso_condicional=7 if condicional else None,
        maximo_disciplinas_condicionais=2 if condicional else 0,
        permite_condicional=condicional,
        classe_terminal=terminal,
    )


def conjunto_politicas_padrao() -> ConjuntoPoliticas:
    """Conjunto de referência com os valores oficialmente documentados.

    - Primário (1ª a 6ª): aprovação com 5 em todas, sem condicional; 6ª terminal.
    - Secundário I (7ª e 8ª): aprovação com 10; até 2 disciplinas entre 7 e 9,
      exceto Língua Portuguesa e Matemática em simultâneo; 9ª terminal.
    - Secundário II (10ª a 13ª): aprovação com 10 em todas; 12ª e 13ª terminais.
    - Frequência mínima anual de 66,67%.
    """
    politicas = [_primario(c, terminal=(c == 6)) for c in range(1, 7)]
    politicas += [
        _secundario(NivelEnsino.SECUNDARIO_I, 7, condicional=True),
        _secundario(NivelEnsino.SECUNDARIO_I, 8, condicional=True),
        _secundario(NivelEnsino.SECUNDARIO_I, 9, terminal=True),
        _secundario(NivelEnsino.SECUNDARIO_II, 10),
        _secundario(NivelEnsino.SECUNDARIO_II, 11),
        _secundario(NivelEnsino.SECUNDARIO_II, 12, terminal=True),
        _secundario(NivelEnsino.SECUNDARIO_II, 13, terminal=True),
    ]
    return ConjuntoPoliticas(
        versao=VERSAO_REFERENCIA,
        descricao="Valores de referência do sistema de ensino angolano",
        politicas=tuple(politicas),
    )
