"""Repositório singleton do conjunto de políticas de transição.

Responsabilidades:
- Carregar políticas de um arquivo JSON quando configurado
- Usar o conjunto de referência quando não houver override
- Entregar snapshots imutáveis para cada execução
"""

import json
import os
from threading import Lock, RLock
from typing import Optional

from pydantic import ValidationError

from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.domain.policy import ConjuntoPoliticas, conjunto_politicas_padrao
from motor_avaliacao.util.logger import logger


class RepositorioPoliticas:
    """Singleton thread-safe para o conjunto de políticas ativo.

    Responsabilidades:
    - Controlar a instância única
    - Manter o conjunto em memória
    - Permitir recarga explícita (nunca a meio de um lote)
    """

    _instancia = None
    _lock = Lock()
    _politicas_lock = RLock()
    _conjunto: Optional[ConjuntoPoliticas] = None

    def __new__(cls):
        if cls._instancia is None:
            with cls._lock:
                if cls._instancia is None:
                    cls._instancia = super(RepositorioPoliticas, cls).__new__(cls)
        return cls._instancia

    def carregar(self, caminho: Optional[str] = None, force: bool = False) -> ConjuntoPoliticas:
        """Carrega o conjunto de políticas.

        Parâmetros:
        - caminho (str | None): arquivo JSON; usa POLITICAS_PATH se nulo
        - force (bool): recarrega mesmo quando já existe em memória

        Retorno:
        - ConjuntoPoliticas: conjunto ativo

        Exceções:
        - FileNotFoundError: caminho configurado inexistente
        - ValueError: arquivo com políticas inválidas
        """
        with self._politicas_lock:
            if self._conjunto is not None and not force:
                return self._conjunto

            caminho = caminho or Configuracoes.POLITICAS_PATH
            if not caminho:
                logger.info("Nenhum override de políticas configurado. Usando conjunto de referência.")
                self._conjunto = conjunto_politicas_padrao()
                return self._conjunto

            if not os.path.exists(caminho):
                logger.critical(f"Arquivo de políticas não encontrado em: {caminho}")
                raise FileNotFoundError(f"Políticas não encontradas em {caminho}")

            try:
                with open(caminho, "r", encoding="utf-8") as arquivo:
                    dados = json.load(arquivo)
                self._conjunto = ConjuntoPoliticas.model_validate(dados)
            except (json.JSONDecodeError, ValidationError) as erro:
                logger.critical(f"Arquivo de políticas inválido ({caminho}): {erro}")
                raise ValueError(f"Arquivo de políticas inválido: {erro}") from erro

            logger.info(f"Políticas carregadas de {caminho} (versão {self._conjunto.versao}).")
            return self._conjunto

    def obter_conjunto(self) -> ConjuntoPoliticas:
        """Snapshot do conjunto ativo. Os modelos são imutáveis."""
        if self._conjunto is None:
            return self.carregar()
        return self._conjunto

    def limpar(self) -> None:
        with self._politicas_lock:
            self._conjunto = None
