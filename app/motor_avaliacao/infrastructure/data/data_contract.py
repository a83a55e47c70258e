"""Validação de contrato de dados.

Responsabilidades:
- Validar presença de colunas obrigatórias
- Validar tipos de dados
- Falhar explicitamente se contrato for violado
"""

from typing import Dict, Iterable, List, Optional

import pandas as pd

from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.util.logger import logger


class ContratoDataFrame:
    """Define e valida contrato de dados para DataFrames.

    Responsabilidades:
    - Especificar colunas obrigatórias
    - Validar tipos esperados
    - Restringir colunas a um domínio de valores
    """

    def __init__(
        self,
        colunas_obrigatorias: List[str],
        tipos_esperados: Dict[str, type] = None,
        valores_permitidos: Optional[Dict[str, Iterable]] = None,
    ):
        """Inicializa o contrato.

        Parâmetros:
        - colunas_obrigatorias (list): colunas que devem estar presentes
        - tipos_esperados (dict): mapeamento coluna -> tipo esperado
        - valores_permitidos (dict): mapeamento coluna -> valores aceites
        """
        self.colunas_obrigatorias = colunas_obrigatorias
        self.tipos_esperados = tipos_esperados or {}
        self.valores_permitidos = {k: set(v) for k, v in (valores_permitidos or {}).items()}

    def validar(self, df: pd.DataFrame) -> pd.DataFrame:
        """Valida o DataFrame contra o contrato e devolve uma cópia tipada.

        Uma nota que não pode ser convertida não é preenchida com zero: nota
        em falta e nota zero têm efeitos diferentes na avaliação.

        Parâmetros:
        - df (pd.DataFrame): DataFrame a validar

        Retorno:
        - pd.DataFrame: cópia com colunas convertidas

        Exceções:
        - ValueError: quando contrato é violado
        """
        if df is None or df.empty:
            raise ValueError("DataFrame vazio ou nulo. Impossível validar contrato.")

        colunas_faltantes = [c for c in self.colunas_obrigatorias if c not in df.columns]
        if colunas_faltantes:
            raise ValueError(
                f"Contrato de dados violado: colunas obrigatórias ausentes: {colunas_faltantes}. "
                f"Colunas disponíveis: {list(df.columns)}"
            )

        df = df.copy()
        for coluna, tipo_esperado in self.tipos_esperados.items():
            if coluna not in df.columns:
                continue

            if tipo_esperado is str:
                df[coluna] = df[coluna].astype(str).str.strip()
                continue

            convertida = pd.to_numeric(df[coluna], errors="coerce")
            invalidas = df.index[convertida.isnull()].tolist()
            if invalidas:
                raise ValueError(
                    f"Contrato de dados violado: coluna '{coluna}' tem valores não convertíveis "
                    f"para {tipo_esperado.__name__} nas linhas {invalidas[:10]}"
                )
            if tipo_esperado is int:
                if (convertida % 1 != 0).any():
                    raise ValueError(f"Contrato de dados violado: coluna '{coluna}' deve conter inteiros")
                convertida = convertida.astype(int)
            df[coluna] = convertida

        for coluna, permitidos in self.valores_permitidos.items():
            fora = sorted({v for v in df[coluna].unique() if v not in permitidos}, key=str)
            if fora:
                raise ValueError(
                    f"Contrato de dados violado: coluna '{coluna}' com valores fora do domínio: {fora}"
                )

        logger.info(f"Contrato de dados validado com sucesso. {len(df)} registros.")
        return df


# Contrato para a tabela de notas lançadas (uma linha por aluno, componente e trimestre)
CONTRATO_NOTAS = ContratoDataFrame(
    colunas_obrigatorias=Configuracoes.COLUNAS_NOTAS,
    tipos_esperados={
        "ALUNO_ID": str,
        "COMPONENTE_ID": str,
        "TRIMESTRE": int,
        "VALOR": float,
    },
    valores_permitidos={"TRIMESTRE": Configuracoes.TRIMESTRES},
)
