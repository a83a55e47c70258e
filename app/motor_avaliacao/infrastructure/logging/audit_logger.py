"""Log de auditoria em JSONL.

Responsabilidades:
- Registrar decisões e notas finais com segurança de thread
- Garantir estrutura padronizada do log
"""

import json
import os
import threading
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.util.logger import logger


class LoggerAuditoria:
    """Logger thread-safe para persistir resultados do motor.

    Responsabilidades:
    - Garantir instância única
    - Serializar modelos pydantic em uma linha JSON
    - Escrever logs com segurança
    """

    _instancia = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instancia is None:
            with cls._lock:
                if cls._instancia is None:
                    cls._instancia = super(LoggerAuditoria, cls).__new__(cls)
        return cls._instancia

    def registrar(self, tipo: str, resultado: BaseModel, correlation_id: Optional[str] = None) -> None:
        """Escreve um registro de auditoria de forma atômica.

        Parâmetros:
        - tipo (str): natureza do registro (ex.: "decisao", "nota_final")
        - resultado (BaseModel): resultado produzido pelo motor
        - correlation_id (str | None): identificador do pedido de origem
        """
        if not Configuracoes.AUDIT_LOG_ENABLED:
            return

        entrada_log = {
            "audit_id": str(uuid.uuid4()),
            "correlation_id": correlation_id or str(uuid.uuid4()),
            "timestamp": datetime.now().isoformat(),
            "tipo": tipo,
            "resultado": resultado.model_dump(mode="json"),
        }

        try:
            linha_json = json.dumps(entrada_log, ensure_ascii=False)
        except (TypeError, ValueError) as erro:
            logger.error(f"Falha ao serializar registro de auditoria: {erro}")
            return

        with self._lock:
            try:
                os.makedirs(os.path.dirname(Configuracoes.AUDIT_LOG_PATH), exist_ok=True)
                self._rotacionar_se_necessario()
                with open(Configuracoes.AUDIT_LOG_PATH, "a", encoding="utf-8") as arquivo:
                    arquivo.write(linha_json + "\n")
            except OSError as erro:
                logger.error(f"Falha Crítica ao escrever no log de auditoria: {erro}")

    @staticmethod
    def _rotacionar_se_necessario() -> None:
        """Rotaciona o arquivo quando atinge o tamanho máximo."""
        try:
            if not os.path.exists(Configuracoes.AUDIT_LOG_PATH):
                return
            if os.path.getsize(Configuracoes.AUDIT_LOG_PATH) < Configuracoes.LOG_MAX_BYTES:
                return
            timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
            os.replace(Configuracoes.AUDIT_LOG_PATH, f"{Configuracoes.AUDIT_LOG_PATH}.{timestamp}.bak")
        except OSError as erro:
            logger.warning(f"Falha ao rotacionar log de auditoria: {erro}")
