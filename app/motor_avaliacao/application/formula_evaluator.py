"""Avaliador de fórmulas de componentes calculados.

Responsabilidades:
- Validar fórmulas numa gramática aritmética restrita (+ - * / e parênteses)
- Compilar a fórmula uma única vez numa árvore sintática
- Avaliar a árvore sobre os valores já resolvidos dos componentes

A gramática não admite chamadas de função, atribuições nem comparações, e
nenhuma fórmula é executada como código Python.
"""

import math
import re
from functools import lru_cache
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from motor_avaliacao.domain.errors import (
    ComponenteDesconhecido,
    DivisaoPorZero,
    ErroComputacao,
    ErroValidacao,
)
from motor_avaliacao.domain.grades import ExpressaoFormula

Numero = Union[int, float]

LIMITE_ANINHAMENTO = 50
LIMITE_TOKENS = 400

_PADRAO_TOKEN = re.compile(
    r"(?P<numero>\d+(?:\.\d*)?|\.\d+)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/])"
    r"|(?P<abre>\()"
    r"|(?P<fecha>\))"
)

_MENSAGENS_CARACTERE = {
    "=": "Atribuições não são suportadas na fórmula",
    "<": "Operadores de comparação não são suportados na fórmula",
    ">": "Operadores de comparação não são suportados na fórmula",
    "!": "Operadores de comparação não são suportados na fórmula",
    ",": "Chamadas de função não são suportadas na fórmula",
}


class _Token(NamedTuple):
    tipo: str
    texto: str
    inicio: int
    fim: int


class _Numero(NamedTuple):
    valor: Numero
    inicio: int
    fim: int


class _Referencia(NamedTuple):
    nome: str
    inicio: int
    fim: int


class _Unario(NamedTuple):
    operador: str
    operando: tuple
    inicio: int
    fim: int


class _Binario(NamedTuple):
    operador: str
    esquerda: tuple
    direita: tuple
    inicio: int
    fim: int


class _ErroSintaxe(Exception):
    """Erro interno do analisador; convertido em mensagem de validação."""


def _tokenizar(texto: str) -> List[_Token]:
    tokens = []
    posicao = 0
    while posicao < len(texto):
        if texto[posicao].isspace():
            posicao += 1
            continue
        casamento = _PADRAO_TOKEN.match(texto, posicao)
        if casamento is None:
            caractere = texto[posicao]
            mensagem = _MENSAGENS_CARACTERE.get(caractere, "Fórmula contém caracteres inválidos")
            raise _ErroSintaxe(f"{mensagem}: '{caractere}' na posição {posicao + 1}")
        tipo = casamento.lastgroup
        tokens.append(_Token(tipo, casamento.group(), casamento.start(), casamento.end()))
        posicao = casamento.end()
    if len(tokens) > LIMITE_TOKENS:
        raise _ErroSintaxe(f"Fórmula demasiado longa (máximo de {LIMITE_TOKENS} elementos)")
    tokens.append(_Token("fim", "", len(texto), len(texto)))
    return tokens


class _Analisador:
    """Analisador descendente recursivo.

    expressao := termo (('+' | '-') termo)*
    termo     := fator (('*' | '/') fator)*
    fator     := ('+' | '-') fator | numero | identificador | '(' expressao ')'
    """

    def __init__(self, texto: str):
        self.texto = texto
        self.tokens = _tokenizar(texto)
        self.indice = 0
        self.profundidade = 0

    def analisar(self):
        arvore = self._expressao()
        atual = self._atual()
        if atual.tipo == "fecha":
            raise _ErroSintaxe("Parênteses desbalanceados")
        if atual.tipo != "fim":
            raise _ErroSintaxe(f"Operador esperado antes de '{atual.texto}' na posição {atual.inicio + 1}")
        return arvore

    def _atual(self) -> _Token:
        return self.tokens[self.indice]

    def _avancar(self) -> _Token:
        token = self.tokens[self.indice]
        self.indice += 1
        return token

    def _expressao(self):
        no = self._termo()
        while self._atual().tipo == "op" and self._atual().texto in "+-":
            operador = self._avancar().texto
            direita = self._termo()
            no = _Binario(operador, no, direita, no.inicio, direita.fim)
        return no

    def _termo(self):
        no = self._fator()
        while self._atual().tipo == "op" and self._atual().texto in "*/":
            operador = self._avancar().texto
            direita = self._fator()
            no = _Binario(operador, no, direita, no.inicio, direita.fim)
        return no

    def _aninhar(self) -> None:
        self.profundidade += 1
        if self.profundidade > LIMITE_ANINHAMENTO:
            raise _ErroSintaxe(f"Fórmula demasiado aninhada (máximo de {LIMITE_ANINHAMENTO} níveis)")

    def _fator(self):
        token = self._atual()

        if token.tipo == "op" and token.texto in "+-":
            self._avancar()
            if self._atual().tipo == "op":
                raise _ErroSintaxe("Operadores consecutivos detectados")
            self._aninhar()
            operando = self._fator()
            self.profundidade -= 1
            return _Unario(token.texto, operando, token.inicio, operando.fim)

        if token.tipo == "numero":
            self._avancar()
            texto = token.texto
            valor = float(texto) if "." in texto else int(texto)
            return _Numero(valor, token.inicio, token.fim)

        if token.tipo == "ident":
            self._avancar()
            if self._atual().tipo == "abre":
                raise _ErroSintaxe(f"Chamadas de função não são suportadas: '{token.texto}(...)'")
            return _Referencia(token.texto, token.inicio, token.fim)

        if token.tipo == "abre":
            self._avancar()
            if self._atual().tipo == "fecha":
                raise _ErroSintaxe(f"Parênteses vazios na posição {token.inicio + 1}")
            self._aninhar()
            interno = self._expressao()
            fecha = self._atual()
            if fecha.tipo != "fecha":
                raise _ErroSintaxe("Parênteses desbalanceados")
            self._avancar()
            self.profundidade -= 1
            return interno._replace(inicio=token.inicio, fim=fecha.fim)

        if token.tipo == "fim":
            raise _ErroSintaxe("Expressão incompleta")
        if token.tipo == "fecha":
            raise _ErroSintaxe("Parênteses desbalanceados")
        raise _ErroSintaxe("Operadores consecutivos detectados")


def _coletar_referencias(no, destino: List[str]) -> None:
    if isinstance(no, _Referencia):
        if no.nome not in destino:
            destino.append(no.nome)
    elif isinstance(no, _Unario):
        _coletar_referencias(no.operando, destino)
    elif isinstance(no, _Binario):
        _coletar_referencias(no.esquerda, destino)
        _coletar_referencias(no.direita, destino)


class FormulaCompilada:
    """Fórmula validada, pronta para ser avaliada várias vezes."""

    def __init__(self, texto: str, arvore):
        self.texto = texto
        self._arvore = arvore
        referencias: List[str] = []
        _coletar_referencias(arvore, referencias)
        self.identificadores = tuple(referencias)

    def avaliar(self, valores: Dict[str, Numero]) -> Numero:
        """Avalia a fórmula.

        Exceções:
        - ComponenteDesconhecido: identificador sem valor resolvido
        - DivisaoPorZero: divisor avaliado como zero
        - ErroComputacao: resultado não finito ou fora do intervalo de vírgula flutuante
        """
        try:
            resultado = self._avaliar_no(self._arvore, valores)
            if not math.isfinite(float(resultado)):
                raise ErroComputacao(f"Resultado não finito ao avaliar '{self.texto}'")
        except OverflowError as erro:
            raise ErroComputacao(f"Resultado fora do intervalo numérico ao avaliar '{self.texto}'") from erro
        return resultado

    def _avaliar_no(self, no, valores: Dict[str, Numero]) -> Numero:
        if isinstance(no, _Numero):
            return no.valor

        if isinstance(no, _Referencia):
            if no.nome not in valores or valores[no.nome] is None:
                raise ComponenteDesconhecido(
                    f"Componente '{no.nome}' desconhecido ou sem valor resolvido",
                    componente=no.nome,
                )
            return valores[no.nome]

        if isinstance(no, _Unario):
            operando = self._avaliar_no(no.operando, valores)
            return -operando if no.operador == "-" else operando

        esquerda = self._avaliar_no(no.esquerda, valores)
        direita = self._avaliar_no(no.direita, valores)
        if no.operador == "+":
            return esquerda + direita
        if no.operador == "-":
            return esquerda - direita
        if no.operador == "*":
            return esquerda * direita

        if direita == 0:
            subexpressao = self.texto[no.inicio:no.fim]
            raise DivisaoPorZero(
                f"Divisão por zero em '{subexpressao}'",
                subexpressao=subexpressao,
            )
        if isinstance(esquerda, int) and isinstance(direita, int) and esquerda % direita == 0:
            return esquerda // direita
        return esquerda / direita


@lru_cache(maxsize=512)
def _compilar(texto: str) -> FormulaCompilada:
    return FormulaCompilada(texto, _Analisador(texto).analisar())


class AvaliadorExpressao:
    """Fachada de validação e avaliação de fórmulas.

    Responsabilidades:
    - Validar sem lançar exceções, devolvendo mensagem para o editor
    - Avaliar fórmulas já válidas com valores resolvidos
    """

    @staticmethod
    def validar(texto: str, componentes_disponiveis: Optional[Iterable[str]] = None) -> ExpressaoFormula:
        """Valida a fórmula e lista os componentes que ela lê.

        Parâmetros:
        - texto (str): expressão escrita pelo administrador
        - componentes_disponiveis (Iterable[str] | None): códigos que podem ser usados

        Retorno:
        - ExpressaoFormula: validade e mensagem legível
        """
        if texto is None or not texto.strip():
            return ExpressaoFormula(texto=texto or "", valida=False, mensagem="Fórmula não pode estar vazia")

        try:
            compilada = _compilar(texto)
        except _ErroSintaxe as erro:
            return ExpressaoFormula(texto=texto, valida=False, mensagem=f"Erro de sintaxe na fórmula: {erro}")

        usados = list(compilada.identificadores)
        if componentes_disponiveis is not None:
            disponiveis = set(componentes_disponiveis)
            em_falta = [codigo for codigo in usados if codigo not in disponiveis]
            if em_falta:
                return ExpressaoFormula(
                    texto=texto,
                    componentes_usados=usados,
                    valida=False,
                    mensagem=f"Componentes não encontrados: {', '.join(em_falta)}",
                )

        return ExpressaoFormula(texto=texto, componentes_usados=usados, valida=True, mensagem="Fórmula válida.")

    @staticmethod
    def compilar(texto: str) -> FormulaCompilada:
        """Compila a fórmula.

        Exceções:
        - ErroValidacao: quando a fórmula não respeita a gramática
        """
        validacao = AvaliadorExpressao.validar(texto)
        if not validacao.valida:
            raise ErroValidacao(validacao.mensagem)
        return _compilar(texto)

    @staticmethod
    def identificadores(texto: str) -> List[str]:
        return list(AvaliadorExpressao.compilar(texto).identificadores)

    @staticmethod
    def avaliar(texto: str, valores: Dict[str, Numero]) -> Numero:
        return AvaliadorExpressao.compilar(texto).avaliar(valores)
