"""Taxonomia de erros do motor de avaliação.

Responsabilidades:
- Distinguir erros de validação, resolução e computação
- Carregar o contexto (componente, disciplina, trimestre) para o chamador
- Converter erros em payloads estruturados para processamento em lote
"""

from typing import Optional

from pydantic import BaseModel


class DetalheErro(BaseModel):
    """Payload estruturado de um erro do motor."""

    categoria: str
    codigo: str
    mensagem: str
    componente: Optional[str] = None
    disciplina_id: Optional[str] = None
    trimestre: Optional[int] = None
    aluno_id: Optional[str] = None


class ErroMotor(Exception):
    """Base para todos os erros do motor."""

    categoria = "ErroMotor"
    codigo = "ErroMotor"

    def __init__(
        self,
        mensagem: str,
        componente: Optional[str] = None,
        disciplina_id: Optional[str] = None,
        trimestre: Optional[int] = None,
        aluno_id: Optional[str] = None,
    ):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.componente = componente
        self.disciplina_id = disciplina_id
        self.trimestre = trimestre
        self.aluno_id = aluno_id

    def com_contexto(
        self,
        disciplina_id: Optional[str] = None,
        trimestre: Optional[int] = None,
        aluno_id: Optional[str] = None,
    ) -> "ErroMotor":
        """Completa o contexto sem sobrescrever o que já foi informado."""
        self.disciplina_id = self.disciplina_id or disciplina_id
        self.trimestre = self.trimestre if self.trimestre is not None else trimestre
        self.aluno_id = self.aluno_id or aluno_id
        return self

    def para_detalhe(self) -> DetalheErro:
        return DetalheErro(
            categoria=self.categoria,
            codigo=self.codigo,
            mensagem=self.mensagem,
            componente=self.componente,
            disciplina_id=self.disciplina_id,
            trimestre=self.trimestre,
            aluno_id=self.aluno_id,
        )


class ErroValidacao(ErroMotor):
    """Fórmula malformada ou configuração inconsistente. Reportado ao editor."""

    categoria = "ValidationError"
    codigo = "FormulaInvalida"


class ConfiguracaoInvalida(ErroValidacao):
    codigo = "InvalidConfiguration"


class ErroResolucao(ErroMotor):
    """Falha fatal para a disciplina/trimestre em cálculo."""

    categoria = "ResolutionError"
    codigo = "ErroResolucao"


class DependenciaCiclica(ErroResolucao):
    codigo = "CyclicDependency"


class ComponenteDesconhecido(ErroResolucao):
    codigo = "UnknownComponent"


class NotaObrigatoriaEmFalta(ErroResolucao):
    codigo = "MissingRequiredMark"


class NotaForaDaEscala(ErroResolucao):
    codigo = "MarkOutOfScale"


class SemPesoContributivo(ErroResolucao):
    codigo = "NoContributingWeight"


class ErroComputacao(ErroMotor):
    """Falha ao avaliar a expressão de um componente calculado."""

    categoria = "ComputationError"
    codigo = "ErroComputacao"


class DivisaoPorZero(ErroComputacao):
    codigo = "DivisionByZero"

    def __init__(self, mensagem: str, subexpressao: str, **contexto):
        super().__init__(mensagem, **contexto)
        self.subexpressao = subexpressao


class DadosIncompletos(ErroMotor):
    """O motor de progressão recusa decidir com notas em falta."""

    categoria = "IncompleteGradeData"
    codigo = "IncompleteGradeData"
